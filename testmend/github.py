import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from .output import format_summary

GITHUB_API = "https://api.github.com"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PullRequest:
    repo: str
    number: int
    sha: Optional[str] = None


def check_if_pull_request() -> Optional[PullRequest]:
    """The pull request a GitHub Actions run belongs to, if any."""
    if os.getenv("GITHUB_EVENT_NAME") != "pull_request":
        return None

    event_path = os.getenv("GITHUB_EVENT_PATH")
    repo = os.getenv("GITHUB_REPOSITORY")
    if not event_path or not repo or not Path(event_path).is_file():
        return None

    event = json.loads(Path(event_path).read_text(encoding="utf-8"))
    pr = event.get("pull_request", {})
    if pr.get("number") is None:
        return None

    return PullRequest(repo=repo, number=pr["number"], sha=pr.get("head", {}).get("sha"))


def format_pr_comment(results):
    """Markdown summary of the session, as posted on the PR."""
    return format_summary(results, 'markdown')


def post_pr_comment(pr: PullRequest, body: str) -> bool:
    """Comment on the pull request. Returns False when no GITHUB_TOKEN is set."""
    token = os.getenv("GITHUB_TOKEN")
    if not token:
        logger.warning("GITHUB_TOKEN not set, skipping comment on PR #%s", pr.number)
        return False

    response = httpx.post(
        f"{GITHUB_API}/repos/{pr.repo}/issues/{pr.number}/comments",
        json={"body": body},
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        },
        timeout=30.0,
    )
    response.raise_for_status()
    logger.info("Commented on %s#%s", pr.repo, pr.number)
    return True
