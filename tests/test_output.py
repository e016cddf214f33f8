"""Tests for result formatting and PR comments."""

import json
from unittest.mock import Mock

import httpx
import pytest

from testmend import github
from testmend.models import ErrorCategory, FixStrategy, RepairAttempt, RepairResult, RepairState
from testmend.output import format_history_table, format_summary, get_state_display

PR = github.PullRequest(repo="acme/web", number=7)


def make_result(test_file="src/a.test.ts", passed=True, state=RepairState.PASSED, final_error=None):
    attempt = RepairAttempt(
        iteration=0,
        category=ErrorCategory.IMPORT_ERROR,
        strategy=FixStrategy.QUICK_FIX,
        errors_before=1,
        errors_after=0 if passed else 1,
        diff_size=3,
        applied=True,
    )
    return RepairResult(
        test_file=test_file,
        passed=passed,
        attempts=1,
        final_error=final_error,
        history=(attempt,),
        best_test_code="code",
        state=state,
    )


def failed_result():
    return make_result(
        "src/b.test.ts",
        passed=False,
        state=RepairState.STUCK,
        final_error="RUNTIME_ERROR:ReferenceError: x is not defined",
    )


def test_state_display():
    assert get_state_display(RepairState.PASSED).startswith("Passed")
    assert get_state_display(RepairState.RUNNING) == "Unknown ⚪"


def test_history_table():
    table = format_history_table(make_result().history)

    assert table.splitlines()[2] == "| 0 | IMPORT_ERROR | quick_fix | 1 | 0 | 3 | yes |"
    assert format_history_table(()) == ""


def test_markdown_summary():
    md = format_summary([make_result(), failed_result()], "markdown")

    assert md.startswith("## 🩹 testmend")
    assert "Healed **1/2** failing test files" in md
    assert "### ✅ src/a.test.ts" in md
    assert "### ❌ src/b.test.ts" in md
    assert "`RUNTIME_ERROR:ReferenceError: x is not defined`" in md


def test_markdown_summary_when_nothing_healed():
    md = format_summary([failed_result()], "markdown")

    assert "Could not heal **1** failing test files" in md


def test_json_summary():
    data = json.loads(format_summary([make_result(), failed_result()], "json"))

    assert data["summary"] == {"total": 2, "passed": 1, "failed": 1}
    assert data["results"][1]["state"] == "STUCK"
    assert data["results"][0]["history"][0]["strategy"] == "quick_fix"


def test_pr_comment_needs_a_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    post = Mock()
    monkeypatch.setattr(github.httpx, "post", post)

    assert github.post_pr_comment(PR, "body") is False
    post.assert_not_called()


def test_pr_comment_is_posted(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    post = Mock(return_value=Mock(raise_for_status=Mock()))
    monkeypatch.setattr(github.httpx, "post", post)

    assert github.post_pr_comment(PR, "body") is True

    url = post.call_args.args[0]
    assert url == "https://api.github.com/repos/acme/web/issues/7/comments"
    assert post.call_args.kwargs["json"] == {"body": "body"}
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer ghp_test"


def test_pr_comment_http_errors_propagate(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    response = Mock()
    response.raise_for_status.side_effect = httpx.HTTPError("403 Forbidden")
    monkeypatch.setattr(github.httpx, "post", Mock(return_value=response))

    with pytest.raises(httpx.HTTPError):
        github.post_pr_comment(PR, "body")


def test_check_if_pull_request(monkeypatch, tmp_path):
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"pull_request": {"number": 12, "head": {"sha": "abc123"}}}))
    monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
    monkeypatch.setenv("GITHUB_EVENT_PATH", str(event))
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/web")

    assert github.check_if_pull_request() == github.PullRequest(repo="acme/web", number=12, sha="abc123")


def test_not_a_pull_request(monkeypatch):
    monkeypatch.setenv("GITHUB_EVENT_NAME", "push")

    assert github.check_if_pull_request() is None
