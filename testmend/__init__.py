"""
testmend - heals failing Jest tests.

Runs a failing test, classifies why it fails, applies a deterministic
quick fix or asks Claude for a corrected test file, re-runs it, and
repeats until it passes or a stop condition is reached.
"""

from .classifier import classify
from .llm import AnthropicFixer, ExternalFixerClient, FixerError
from .models import (
    ErrorCategory,
    FixStrategy,
    ParsedError,
    RepairAttempt,
    RepairContext,
    RepairResult,
    RepairState,
    RunResult,
)
from .quick_fix import apply_quick_fix
from .repair import RepairOrchestrator, repair_many
from .runner import JestExecutor
from .strategy import select_strategy

__all__ = [
    "AnthropicFixer",
    "ErrorCategory",
    "ExternalFixerClient",
    "FixStrategy",
    "FixerError",
    "JestExecutor",
    "ParsedError",
    "RepairAttempt",
    "RepairContext",
    "RepairOrchestrator",
    "RepairResult",
    "RepairState",
    "RunResult",
    "apply_quick_fix",
    "classify",
    "repair_many",
    "select_strategy",
]
