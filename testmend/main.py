import argparse
import os
import sys
import time
from dataclasses import replace
from pathlib import Path

import httpx

from .config import ConfigError, Settings
from .github import check_if_pull_request, format_pr_comment, post_pr_comment
from .llm import build_fixer
from .models import RepairContext
from .output import format_summary
from .repair import repair_many
from .runner import JestExecutor
from .utils import console, find_source_file, is_test_file, setup_logging


def build_parser():
    parser = argparse.ArgumentParser(
        prog='testmend',
        description='Heals failing Jest tests: classifies the failure, applies a fix, re-runs, repeats',
        epilog='Examples:\n  testmend src/button.test.tsx\n  testmend src/*.test.ts --jobs 4 --output markdown',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("test_files", nargs='+', help='Failing test file(s) to heal')
    parser.add_argument('--workspace', default='.', help='Workspace root (default: current directory)')
    parser.add_argument('--source', help='Source file under test (only with a single test file)')
    parser.add_argument('--context', action='append', default=[], help='Related file passed to the fixer as context (repeatable)')
    parser.add_argument('--max-iterations', type=int, help='Repair iterations per file')
    parser.add_argument('--jest-command', help='Command used to run Jest (default: npx jest)')
    parser.add_argument('--jobs', type=int, default=1, help='Test files repaired in parallel (default: 1)')
    parser.add_argument('--output', choices=['console', 'markdown', 'json'], default='console', help='Output format (default: console)')
    parser.add_argument('--debug', action='store_true', help='Enable debug output')
    return parser


def read_dependency_context(paths):
    if not paths:
        return None

    sections = []
    for path in paths:
        content = Path(path).read_text(encoding='utf-8', errors='ignore')
        sections.append(f"// File: {path}\n{content}")
    return "\n\n".join(sections)


def build_contexts(args, settings):
    if args.source and len(args.test_files) > 1:
        raise ValueError("--source can only be used with a single test file")

    workspace = str(Path(args.workspace).resolve())
    dependency_context = read_dependency_context(args.context)

    contexts = []
    for test_file in args.test_files:
        test_path = Path(test_file)
        if not test_path.is_file():
            raise FileNotFoundError(test_file)
        if not is_test_file(test_path):
            console.print(f"[yellow]⚠[/yellow] {test_file} does not look like a test file")

        source_path = Path(args.source) if args.source else find_source_file(test_path)
        if source_path is None:
            raise FileNotFoundError(f"source file for {test_file}")

        contexts.append(RepairContext(
            source_code=source_path.read_text(encoding='utf-8', errors='ignore'),
            file_name=source_path.name,
            test_file_path=str(test_path.resolve()),
            workspace_root=workspace,
            dependency_context=dependency_context,
            max_iterations=settings.max_iterations,
        ))

    return contexts


def main(argv=None):
    """
    CLI entry point for testmend.

    Repairs each test file, prints the results, and posts them to the PR
    when running in GitHub Actions.

    Exit codes:
        0 - Every test file passes
        1 - Some test files could not be healed or an error occurred
        130 - Interrupted by user (Ctrl+C)
    """
    args = build_parser().parse_args(argv)

    try:
        if args.debug:
            os.environ["DEBUG"] = "true"

        settings = Settings.from_env()
        logger = setup_logging(args.debug or settings.debug)

        max_iterations = settings.max_iterations
        if args.max_iterations is not None:
            max_iterations = args.max_iterations
        if max_iterations < 1:
            raise ConfigError("--max-iterations must be at least 1")
        settings = replace(
            settings,
            max_iterations=max_iterations,
            jest_command=args.jest_command or settings.jest_command,
            debug=args.debug or settings.debug,
        )

        start_time = time.time()
        contexts = build_contexts(args, settings)

        fixer = build_fixer(settings, logger)
        if not fixer.available:
            console.print("[yellow]⚠[/yellow] ANTHROPIC_API_KEY not set, only quick fixes will be applied")

        executor = JestExecutor(settings.jest_command, settings.test_timeout, logger)

        with console.status(f"Healing {len(contexts)} test file(s)..."):
            results = repair_many(contexts, executor, fixer, jobs=args.jobs, logger=logger)

        for result in results:
            if not result.passed:
                Path(result.test_file).write_text(result.best_test_code, encoding='utf-8')

        pr = check_if_pull_request()
        if pr:
            with console.status("Posting to PR..."):
                posted = post_pr_comment(pr, format_pr_comment(results))
            if posted:
                console.print(f"[green]✓[/green] Posted to PR #{pr.number}")

        elapsed = time.time() - start_time
        total = len(results)
        passed = sum(1 for r in results if r.passed)

        if args.output == 'console':
            format_summary(results, 'console')
            console.print(f"Finished in {elapsed:.1f}s")
        else:
            print(format_summary(results, args.output))

        sys.exit(0 if passed == total else 1)

    except FileNotFoundError as e:
        console.print(f"[red]✗[/red] Not found: {e}")
        sys.exit(1)

    except (ConfigError, ValueError) as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)

    except httpx.HTTPError as e:
        console.print(f"[red]✗[/red] GitHub API error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        sys.exit(130)

    except Exception as e:
        if args.debug:
            console.print_exception()
        else:
            console.print(f"[red]✗[/red] Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
