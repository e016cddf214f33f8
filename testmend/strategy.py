from .classifier import extract_module_specifier
from .models import ErrorCategory, FixStrategy, ParsedError

MOCK_MARKERS = ("jest.mock", "vi.mock", "SyntaxError")


def is_external_module(message: str) -> bool:
    """True when the unresolved module is a package, not a project file."""
    if "node_modules" in message:
        return True

    specifier = extract_module_specifier(message)
    if specifier is None:
        return False

    return not specifier.startswith((".", "/"))


def select_strategy(error: ParsedError) -> FixStrategy:
    """
    Pick how to remediate a classified failure.

    A missing dependency is never "fixed" by rewriting the test, so bare
    package imports are unfixable. Everything else is either a known
    mechanical defect (quick fix) or handed to the external fixer.
    """
    category = error.category

    if category == ErrorCategory.IMPORT_ERROR:
        if is_external_module(error.message):
            return FixStrategy.UNFIXABLE
        return FixStrategy.QUICK_FIX

    if category == ErrorCategory.TYPE_ERROR:
        if any(marker in error.message for marker in MOCK_MARKERS):
            return FixStrategy.QUICK_FIX
        return FixStrategy.EXTERNAL_FIX

    if category == ErrorCategory.SYNTAX_ERROR:
        return FixStrategy.QUICK_FIX

    # Mock shapes, expectations, runtime logic and unknowns need judgement
    return FixStrategy.EXTERNAL_FIX
