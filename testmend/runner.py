import logging
import shlex
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from .models import RunResult

JEST_CONFIG_NAMES = (
    "jest.config.js",
    "jest.config.ts",
    "jest.config.mjs",
    "jest.config.cjs",
    "jest.config.json",
)


class TestExecutor(Protocol):
    def run(self, test_file_path: str, workspace_root: str) -> RunResult:
        ...


def find_project_root(test_path: Path, workspace_root: Path) -> Path:
    """Closest directory holding a package.json, without leaving the workspace."""
    for directory in test_path.parents:
        if (directory / "package.json").is_file():
            return directory
        if directory == workspace_root:
            break
    return workspace_root


def has_jest_config(project_root: Path) -> bool:
    return any((project_root / name).is_file() for name in JEST_CONFIG_NAMES)


class JestExecutor:
    """
    Runs a single Jest test file.

    Never raises: a missing executable, a timeout or a file outside the
    workspace are reported as failed runs so the repair loop classifies
    them like any other failure.
    """

    def __init__(self, command: str = "npx jest", timeout: int = 300, logger: Optional[logging.Logger] = None):
        self.command = shlex.split(command)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def build_command(self, test_path: Path, project_root: Path) -> list[str]:
        cmd = self.command + [str(test_path), "--no-coverage", "--verbose", "--colors"]
        if not has_jest_config(project_root):
            cmd += ["--passWithNoTests", "--testEnvironment=node"]
        return cmd

    def run(self, test_file_path: str, workspace_root: str) -> RunResult:
        workspace = Path(workspace_root).resolve()
        test_path = Path(test_file_path).resolve()

        if not test_path.is_relative_to(workspace):
            self.logger.error("Refusing to run %s: outside workspace %s", test_path, workspace)
            return RunResult(
                success=False,
                output=f"Test file must be within workspace. File: {test_path}, Workspace: {workspace}",
            )

        project_root = find_project_root(test_path, workspace)
        cmd = self.build_command(test_path, project_root)
        self.logger.debug("Running %s in %s", " ".join(cmd), project_root)

        try:
            result = subprocess.run(
                cmd,
                cwd=project_root,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            self.logger.warning("Jest timed out after %ss on %s", self.timeout, test_path.name)
            return RunResult(success=False, output=f"Test timed out after {self.timeout} seconds")
        except OSError as e:
            self.logger.error("Could not start %s: %s", self.command[0], e)
            return RunResult(success=False, output=f"Process error: {e}")

        output = (result.stdout or "") + (result.stderr or "")
        success = result.returncode == 0
        if not success:
            self.logger.debug("Jest exited with code %d for %s", result.returncode, test_path.name)

        return RunResult(success=success, output=output)
