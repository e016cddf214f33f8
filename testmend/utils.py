import json
import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

LOGGER_NAME = "testmend"

TEST_SUFFIXES = (".test", ".spec")
TEST_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"}
SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
TEST_DIR_NAMES = {"__tests__"}


def debug_enabled() -> bool:
    return os.getenv("DEBUG", "False").lower() == "true"


def setup_logging(debug: bool = False) -> logging.Logger:
    """Attach a single rich handler to the package logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def debug_log(title: str, content):
    if not debug_enabled():
        return

    if isinstance(content, dict):
        content = json.dumps(content, indent=2, default=str)
    elif not isinstance(content, str):
        content = str(content)

    console.print()
    console.rule(f"DEBUG: {title}")
    console.print(content, markup=False, highlight=False)
    console.rule()
    console.print()


def is_test_file(path: str | Path) -> bool:
    p = Path(path)

    if p.suffix not in TEST_EXTENSIONS:
        return False

    if Path(p.stem).suffix in TEST_SUFFIXES:
        return True

    if any(part in TEST_DIR_NAMES for part in p.parts):
        return True

    return False


def find_source_file(test_path: str | Path) -> Optional[Path]:
    """
    Locate the source a test file covers.

    foo.test.ts -> foo.ts next to it, or one directory up for
    __tests__ layouts. Any of the usual TS/JS extensions is accepted.
    """
    p = Path(test_path)
    base = p.stem
    if Path(base).suffix in TEST_SUFFIXES:
        base = Path(base).stem

    for directory in (p.parent, p.parent.parent):
        for ext in SOURCE_EXTENSIONS:
            candidate = directory / f"{base}{ext}"
            if candidate.is_file() and candidate.resolve() != p.resolve():
                return candidate

    return None
