from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    IMPORT_ERROR = "IMPORT_ERROR"
    MOCK_ERROR = "MOCK_ERROR"
    TYPE_ERROR = "TYPE_ERROR"
    ASSERTION_ERROR = "ASSERTION_ERROR"
    SYNTAX_ERROR = "SYNTAX_ERROR"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    UNKNOWN = "UNKNOWN"


class FixStrategy(str, Enum):
    QUICK_FIX = "quick_fix"
    EXTERNAL_FIX = "external_fix"
    UNFIXABLE = "unfixable"


class RepairState(str, Enum):
    RUNNING = "RUNNING"
    PASSED = "PASSED"
    STUCK = "STUCK"
    UNFIXABLE = "UNFIXABLE"
    NO_PROGRESS = "NO_PROGRESS"
    EXHAUSTED = "EXHAUSTED"


SIGNATURE_PREFIX = 100


@dataclass(frozen=True)
class RunResult:
    # --- Normalized outcome of one test execution ---
    success: bool
    output: str = ""


@dataclass(frozen=True)
class ParsedError:
    category: ErrorCategory
    message: str
    raw_output: str
    error_count: int = 1
    location: Optional[tuple[str, int]] = None

    @property
    def signature(self) -> str:
        """Identity used to tell whether two failures are the same."""
        return f"{self.category.value}:{self.message[:SIGNATURE_PREFIX]}"


@dataclass(frozen=True)
class RepairAttempt:
    iteration: int
    category: ErrorCategory
    strategy: FixStrategy
    errors_before: int
    errors_after: int
    diff_size: int
    applied: bool


@dataclass(frozen=True)
class RepairContext:
    # --- Source under test ---
    source_code: str
    file_name: str

    # --- Test / workspace ---
    test_file_path: str
    workspace_root: str

    # --- Extra context for the external fixer ---
    dependency_context: Optional[str] = None

    max_iterations: int = 3


@dataclass(frozen=True)
class RepairResult:
    test_file: str
    passed: bool
    attempts: int
    final_error: Optional[str]
    history: tuple[RepairAttempt, ...]
    best_test_code: str
    state: RepairState
