"""
Deterministic rewrites for defects that show up again and again in
generated tests. No filesystem or process access here.
"""
import re
from typing import Optional

from .classifier import extract_module_specifier
from .models import ErrorCategory, ParsedError

MOCK_CALL = re.compile(r"\b(?:jest|vi)\.mock\(")

IDENTIFIER = r"[A-Za-z_$][\w$]*"
GENERIC_ARGS = r"<[^<>()]*(?:<[^<>()]*>[^<>()]*)*>"
TYPE_NAME = (
    r"(?:"
    rf"{IDENTIFIER}{GENERIC_ARGS}(?:\[\])*"
    rf"|{IDENTIFIER}(?:\[\])+"
    r"|string|number|boolean|bigint|symbol|any|unknown|void|object|never"
    r")"
)
PARAM_ANNOTATION = re.compile(
    rf"([(,]\s*)({IDENTIFIER})\??\s*:\s*{TYPE_NAME}(?=\s*[,)=])"
)

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}
QUOTES = {"'", '"', "`"}


def _skip_string(code: str, start: int) -> int:
    """Return the index just past the string literal opening at start."""
    quote = code[start]
    i = start + 1
    while i < len(code):
        char = code[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return len(code)


def _skip_comment(code: str, start: int) -> int:
    """Return the index just past the // or /* */ comment opening at start."""
    if code.startswith("//", start):
        end = code.find("\n", start)
        return len(code) if end == -1 else end
    end = code.find("*/", start + 2)
    return len(code) if end == -1 else end + 2


def _skip_literal(code: str, i: int) -> Optional[int]:
    """End of the string or comment starting at i, or None if none starts there."""
    if code[i] in QUOTES:
        return _skip_string(code, i)
    if code.startswith(("//", "/*"), i):
        return _skip_comment(code, i)
    return None


def find_mock_factory_spans(code: str) -> list[tuple[int, int]]:
    """
    Locate the factory argument of every jest.mock()/vi.mock() call.

    Returns (start, end) offsets covering everything after the first
    top-level comma up to the call's closing parenthesis. Calls without a
    factory are skipped. Brackets inside strings and comments do not count.
    """
    spans = []

    for match in MOCK_CALL.finditer(code):
        i = match.end()
        depth = 1
        factory_start = None

        while i < len(code) and depth > 0:
            skipped = _skip_literal(code, i)
            if skipped is not None:
                i = skipped
                continue
            char = code[i]
            if char in OPENERS:
                depth += 1
            elif char in CLOSERS:
                depth -= 1
            elif char == "," and depth == 1 and factory_start is None:
                factory_start = i + 1
            i += 1

        if depth == 0 and factory_start is not None:
            spans.append((factory_start, i - 1))

    return spans


def _strip_outside_literals(factory: str) -> str:
    pieces = []
    last = 0
    i = 0
    while i < len(factory):
        skipped = _skip_literal(factory, i)
        if skipped is None:
            i += 1
            continue
        pieces.append(PARAM_ANNOTATION.sub(r"\1\2", factory[last:i]))
        pieces.append(factory[i:skipped])
        last = i = skipped
    pieces.append(PARAM_ANNOTATION.sub(r"\1\2", factory[last:]))
    return "".join(pieces)


def strip_mock_factory_types(code: str) -> str:
    """
    Remove parameter type annotations inside mock factories.

        jest.mock('x', () => ({ fn: (a: string, b: number) => {} }))
    becomes
        jest.mock('x', () => ({ fn: (a, b) => {} }))

    Annotations outside a factory, and text inside strings or comments,
    are left alone.
    """
    spans = find_mock_factory_spans(code)
    if not spans:
        return code

    pieces = []
    last = 0
    for start, end in spans:
        pieces.append(code[last:start])
        pieces.append(_strip_outside_literals(code[start:end]))
        last = end
    pieces.append(code[last:])

    return "".join(pieces)


def deepen_relative_import(code: str, specifier: str) -> str:
    """Point every quoted occurrence of specifier one directory higher."""
    if specifier.startswith("./"):
        deeper = "../" + specifier[2:]
    elif specifier.startswith("../"):
        deeper = "../" + specifier
    else:
        return code

    for quote in QUOTES:
        code = code.replace(f"{quote}{specifier}{quote}", f"{quote}{deeper}{quote}")

    return code


def apply_quick_fix(test_code: str, error: ParsedError) -> Optional[str]:
    """
    Apply the deterministic fix registered for error's category.

    Returns:
        The rewritten test code, or None when no fix applies or the
        rewrite would not change anything
    """
    if error.category in (ErrorCategory.TYPE_ERROR, ErrorCategory.SYNTAX_ERROR):
        fixed = strip_mock_factory_types(test_code)

    elif error.category == ErrorCategory.IMPORT_ERROR:
        specifier = extract_module_specifier(error.message)
        if specifier is None:
            return None
        fixed = deepen_relative_import(test_code, specifier)

    else:
        return None

    return fixed if fixed != test_code else None
