import json
from pathlib import Path

from rich.markup import escape

from .utils import console


# === HELPERS ===

STATE_DISPLAY = {
    "PASSED": "Passed ✅",
    "STUCK": "Stuck on a repeating failure 🔁",
    "UNFIXABLE": "Unfixable ⛔",
    "NO_PROGRESS": "No fix produced ⚠️",
    "EXHAUSTED": "Iteration budget exhausted ⌛",
}


def get_state_display(state) -> str:
    """Return the terminal state as text with emoji."""
    return STATE_DISPLAY.get(state.value, "Unknown ⚪")


def format_history_table(history) -> str:
    """Format repair attempts as a markdown table."""
    if not history:
        return ""

    md = "| # | category | strategy | errors before | errors after | diff | applied |\n"
    md += "|---|---|---|---|---|---|---|\n"
    for attempt in history:
        md += (
            f"| {attempt.iteration} | {attempt.category.value} | {attempt.strategy.value} "
            f"| {attempt.errors_before} | {attempt.errors_after} | {attempt.diff_size} "
            f"| {'yes' if attempt.applied else 'no'} |\n"
        )
    return md


# === MAIN FORMATTERS ===

def format_summary(results, format_type):
    if format_type == 'console':
        return _format_console_summary(results)
    elif format_type == 'markdown':
        return _format_markdown_summary(results)
    elif format_type == 'json':
        return _format_json_summary(results)


# === CONSOLE OUTPUT ===

def _format_console(result):
    """Print a single repair result to the console."""
    name = Path(result.test_file).name
    if result.passed:
        console.print(f"[green]✓[/green] {escape(name)} ({result.attempts} attempt(s))")
    else:
        console.print(f"[red]✗[/red] {escape(name)}: {result.state.value} after {result.attempts} attempt(s)")
        if result.final_error:
            console.print(f"  [dim]{escape(result.final_error[:150])}[/dim]", highlight=False)


def _format_console_summary(results):
    """Print every result and a totals line."""
    total = len(results)
    passed = sum(1 for r in results if r.passed)

    for result in results:
        _format_console(result)

    console.print()

    if passed == total:
        console.print(f"[green]✓[/green] Healed {passed}/{total} test files")
    elif passed > 0:
        console.print(f"[yellow]⚠[/yellow] Healed {passed}/{total} test files")
    else:
        console.print(f"[red]✗[/red] Healed {passed}/{total} test files")


# === MARKDOWN OUTPUT ===

def _format_markdown(result):
    """Format a single repair result for markdown."""
    error_short = result.final_error[:150] if result.final_error else ""

    if result.passed:
        md = f"### ✅ {result.test_file}\n\n"
    else:
        md = f"### ❌ {result.test_file}\n\n"

    md += f"**Outcome:** {get_state_display(result.state)}\n\n"
    md += f"**Attempts:** {result.attempts}\n\n"

    if error_short:
        md += f"**Last error:** `{error_short}`\n\n"

    table = format_history_table(result.history)
    if table:
        md += table + "\n"

    return md


def _format_markdown_summary(results):
    """Format summary header and every result for markdown."""
    total = len(results)
    passed = sum(1 for r in results if r.passed)

    md = "## 🩹 testmend\n\n"

    if passed > 0:
        md += f"Healed **{passed}/{total}** failing test files\n\n"
    else:
        md += f"Could not heal **{total}** failing test files\n\n"

    md += "---\n\n"

    for result in results:
        md += _format_markdown(result)
        md += "---\n\n"

    return md


# === JSON OUTPUT ===

def _format_json(result):
    """Format a single result as JSON dict."""
    return {
        "test_file": result.test_file,
        "passed": result.passed,
        "state": result.state.value,
        "attempts": result.attempts,
        "final_error": result.final_error,
        "history": [
            {
                "iteration": a.iteration,
                "category": a.category.value,
                "strategy": a.strategy.value,
                "errors_before": a.errors_before,
                "errors_after": a.errors_after,
                "diff_size": a.diff_size,
                "applied": a.applied,
            }
            for a in result.history
        ],
    }


def _format_json_summary(results):
    """Format all results as JSON."""
    total = len(results)
    passed = sum(1 for r in results if r.passed)

    output = {
        "results": [_format_json(r) for r in results],
        "summary": {
            "total": total,
            "passed": passed,
            "failed": total - passed,
        }
    }

    return json.dumps(output, indent=2)
