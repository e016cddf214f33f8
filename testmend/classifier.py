"""
Turns raw Jest / Vitest output into a ParsedError.

Patterns are checked in order and the first match wins, so the more
actionable categories (imports, mocks) are listed before generic ones.
"""
import re
from typing import Optional

from .models import ErrorCategory, ParsedError

MESSAGE_LIMIT = 500

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

ERROR_PATTERNS = [
    # Module resolution
    (ErrorCategory.IMPORT_ERROR, re.compile(r"Cannot find module '([^']+)'", re.IGNORECASE)),
    (ErrorCategory.IMPORT_ERROR, re.compile(r"Module not found.*", re.IGNORECASE)),
    (ErrorCategory.IMPORT_ERROR, re.compile(r"Could not locate module.*", re.IGNORECASE)),

    # Mock factories
    (ErrorCategory.MOCK_ERROR, re.compile(r"jest\.mock\(\).*is not allowed", re.IGNORECASE)),
    (ErrorCategory.MOCK_ERROR, re.compile(r"mockImplementation.*is not a function", re.IGNORECASE)),
    (ErrorCategory.MOCK_ERROR, re.compile(r"Cannot spy.*not a function", re.IGNORECASE)),
    (ErrorCategory.MOCK_ERROR, re.compile(r"mock.*is not a function", re.IGNORECASE)),
    (ErrorCategory.MOCK_ERROR, re.compile(
        r"The module factory of `jest\.mock\(\)` is not allowed to reference", re.IGNORECASE)),

    # Types, including type annotations babel could not parse
    (ErrorCategory.TYPE_ERROR, re.compile(r"TypeError:.*", re.IGNORECASE)),
    (ErrorCategory.TYPE_ERROR, re.compile(r"SyntaxError:.*unexpected token.*:.*", re.IGNORECASE)),
    (ErrorCategory.TYPE_ERROR, re.compile(r"Type '.*' is not assignable", re.IGNORECASE)),
    (ErrorCategory.TYPE_ERROR, re.compile(r"Property '.*' does not exist on type", re.IGNORECASE)),

    # Expectations
    (ErrorCategory.ASSERTION_ERROR, re.compile(r"expect\(received\)", re.IGNORECASE)),
    (ErrorCategory.ASSERTION_ERROR, re.compile(r"Expected.*Received", re.IGNORECASE)),
    (ErrorCategory.ASSERTION_ERROR, re.compile(
        r"(?:toBe|toEqual|toContain|toHaveLength).*received", re.IGNORECASE)),

    # Generic parse failures
    (ErrorCategory.SYNTAX_ERROR, re.compile(r"SyntaxError:.*", re.IGNORECASE)),
    (ErrorCategory.SYNTAX_ERROR, re.compile(r"Unexpected token.*", re.IGNORECASE)),

    # Uncaught runtime errors
    (ErrorCategory.RUNTIME_ERROR, re.compile(r"ReferenceError:.*", re.IGNORECASE)),
    (ErrorCategory.RUNTIME_ERROR, re.compile(r"RangeError:.*", re.IGNORECASE)),
]

LOCATION_PATTERN = re.compile(r"at\s+.*\(([^:()]+):(\d+):\d+\)")
FAIL_COUNT_PATTERN = re.compile(r"(\d+)\s+fail", re.IGNORECASE)
EXPECTED_RECEIVED_PATTERN = re.compile(r"Expected:.*\n\s*Received:.*")
MODULE_SPECIFIER_PATTERN = re.compile(r"Cannot find module '([^']+)'", re.IGNORECASE)


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


def extract_location(output: str) -> Optional[tuple[str, int]]:
    match = LOCATION_PATTERN.search(output)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def count_failures(output: str) -> int:
    """
    Number of failures from the first "<n> fail" summary line.

    Jest prints "Test Suites: 1 failed" before "Tests: 3 failed", so this
    undercounts multi-failure runs. Regression detection compares counts
    produced by this same function, which keeps it consistent.
    """
    match = FAIL_COUNT_PATTERN.search(output)
    if not match:
        return 1
    return max(int(match.group(1)), 1)


def extract_module_specifier(message: str) -> Optional[str]:
    match = MODULE_SPECIFIER_PATTERN.search(message)
    return match.group(1) if match else None


def classify(raw_output: str) -> ParsedError:
    """
    Classify one test run's output.

    Pure function of raw_output; never raises.

    Args:
        raw_output: Combined stdout/stderr of the failing run

    Returns:
        ParsedError with category, message, location and error count
    """
    output = strip_ansi(raw_output or "")

    category = ErrorCategory.UNKNOWN
    message = ""

    for pattern_category, pattern in ERROR_PATTERNS:
        match = pattern.search(output)
        if match:
            category = pattern_category
            message = match.group(0)
            break

    if category == ErrorCategory.ASSERTION_ERROR:
        block = EXPECTED_RECEIVED_PATTERN.search(output)
        if block:
            message = block.group(0)[:MESSAGE_LIMIT]

    return ParsedError(
        category=category,
        message=message or output[:MESSAGE_LIMIT],
        raw_output=raw_output or "",
        error_count=count_failures(output),
        location=extract_location(output),
    )
