import logging
import math
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from .classifier import classify
from .llm import ExternalFixerClient
from .models import (
    FixStrategy,
    ParsedError,
    RepairAttempt,
    RepairContext,
    RepairResult,
    RepairState,
)
from .quick_fix import apply_quick_fix
from .runner import TestExecutor
from .strategy import select_strategy

ERROR_CONTEXT_LIMIT = 3000
NO_RUN_ERROR = "Max iterations reached"


class RepairOrchestrator:
    """
    Heals one failing test file.

    Each iteration runs the test, classifies the failure, applies a quick
    fix or an external fix, and re-runs the test to verify it. The loop
    stops when the test passes, the same failure repeats, the failure is
    unfixable, a fix changes nothing, or the iteration budget runs out.

    The file on disk is rewritten in place. The content with the fewest
    failures seen so far is kept in memory and restored whenever a fix
    makes things worse.
    """

    def __init__(
        self,
        executor: TestExecutor,
        fixer: ExternalFixerClient,
        logger: Optional[logging.Logger] = None,
    ):
        self.executor = executor
        self.fixer = fixer
        self.logger = logger or logging.getLogger(__name__)

    def repair(self, ctx: RepairContext) -> RepairResult:
        """
        Run the repair loop for ctx.test_file_path.

        Args:
            ctx: Fixed inputs for the session; never modified

        Returns:
            RepairResult describing the terminal state, history and the
            best test code observed
        """
        test_path = Path(ctx.test_file_path)
        history: list[RepairAttempt] = []

        current_code = test_path.read_text(encoding="utf-8")
        best_code = current_code
        best_count = math.inf
        last_signature = ""
        last_error: Optional[ParsedError] = None

        def finish(state: RepairState, attempts: int) -> RepairResult:
            passed = state == RepairState.PASSED
            if passed:
                final_error = None
            elif last_error is not None:
                final_error = last_error.signature
            else:
                final_error = NO_RUN_ERROR

            self.logger.info("%s: %s after %d attempt(s)", test_path.name, state.value, attempts)
            return RepairResult(
                test_file=ctx.test_file_path,
                passed=passed,
                attempts=attempts,
                final_error=final_error,
                history=tuple(history),
                best_test_code=current_code if passed else best_code,
                state=state,
            )

        def stop(state: RepairState, error: ParsedError, strategy: FixStrategy) -> RepairResult:
            history.append(RepairAttempt(
                iteration=iteration,
                category=error.category,
                strategy=strategy,
                errors_before=error.error_count,
                errors_after=error.error_count,
                diff_size=0,
                applied=False,
            ))
            return finish(state, len(history))

        self.logger.info("Repairing %s (max %d iterations)", test_path.name, ctx.max_iterations)

        for iteration in range(ctx.max_iterations):
            run = self.executor.run(ctx.test_file_path, ctx.workspace_root)
            if run.success:
                return finish(RepairState.PASSED, iteration)

            error = classify(run.output)
            last_error = error
            self.logger.info(
                "%s: iteration %d, %s (%d failing): %s",
                test_path.name, iteration, error.category.value, error.error_count, error.message[:200],
            )

            if error.error_count < best_count:
                best_count = error.error_count
                best_code = current_code

            if error.signature == last_signature:
                self.logger.warning("%s: same failure as previous iteration, giving up", test_path.name)
                return stop(RepairState.STUCK, error, FixStrategy.UNFIXABLE)
            last_signature = error.signature

            strategy = select_strategy(error)
            if strategy == FixStrategy.UNFIXABLE:
                self.logger.warning("%s: unfixable failure: %s", test_path.name, error.message)
                return stop(RepairState.UNFIXABLE, error, strategy)

            fixed_code = None
            if strategy == FixStrategy.QUICK_FIX:
                fixed_code = apply_quick_fix(current_code, error)
                if fixed_code is None:
                    self.logger.debug("%s: no quick fix applies, trying external fixer", test_path.name)

            if fixed_code is None:
                strategy = FixStrategy.EXTERNAL_FIX
                fixed_code = self.fixer.fix(
                    ctx.source_code,
                    ctx.file_name,
                    current_code,
                    error.raw_output[:ERROR_CONTEXT_LIMIT],
                    iteration + 1,
                    ctx.dependency_context,
                )

            if fixed_code is None or fixed_code == current_code:
                self.logger.warning("%s: fix produced no changes", test_path.name)
                return stop(RepairState.NO_PROGRESS, error, strategy)

            diff_size = abs(len(fixed_code) - len(current_code))
            test_path.write_text(fixed_code, encoding="utf-8")
            current_code = fixed_code

            verify = self.executor.run(ctx.test_file_path, ctx.workspace_root)
            if verify.success:
                history.append(RepairAttempt(
                    iteration=iteration,
                    category=error.category,
                    strategy=strategy,
                    errors_before=error.error_count,
                    errors_after=0,
                    diff_size=diff_size,
                    applied=True,
                ))
                return finish(RepairState.PASSED, iteration + 1)

            new_error = classify(verify.output)
            last_error = new_error

            if new_error.error_count > error.error_count:
                self.logger.warning(
                    "%s: fix raised failures from %d to %d, reverting to best attempt",
                    test_path.name, error.error_count, new_error.error_count,
                )
                test_path.write_text(best_code, encoding="utf-8")
                current_code = best_code
            elif new_error.error_count < best_count:
                best_count = new_error.error_count
                best_code = current_code

            history.append(RepairAttempt(
                iteration=iteration,
                category=error.category,
                strategy=strategy,
                errors_before=error.error_count,
                errors_after=new_error.error_count,
                diff_size=diff_size,
                applied=True,
            ))

        return finish(RepairState.EXHAUSTED, len(history))


def repair_many(
    contexts: list[RepairContext],
    executor: TestExecutor,
    fixer: ExternalFixerClient,
    jobs: int = 1,
    logger: Optional[logging.Logger] = None,
) -> list[RepairResult]:
    """
    Repair several test files, up to jobs at a time.

    Each file gets its own orchestrator session and is handled strictly
    sequentially; a test file may only appear once. Results come back in
    the order of contexts.
    """
    paths = [Path(ctx.test_file_path).resolve() for ctx in contexts]
    if len(set(paths)) != len(paths):
        raise ValueError("each test file can only be repaired by one session at a time")

    orchestrator = RepairOrchestrator(executor, fixer, logger)

    if jobs <= 1 or len(contexts) <= 1:
        return [orchestrator.repair(ctx) for ctx in contexts]

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(orchestrator.repair, contexts))
