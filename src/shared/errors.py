"""
Error taxonomy for GPU telemetry acquisition.

Every error here is recoverable: the snapshot cache catches GPUAcquisitionError
and falls back to its stored snapshot, so none of these reach the API layer.
"""
from typing import Optional


class GPUAcquisitionError(Exception):
    """Base class for any failure while acquiring live GPU telemetry."""


class LaunchFailure(GPUAcquisitionError):
    """The diagnostic tool could not be started (missing binary, permission denied)."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to launch {path}: {reason}")


class InvocationTimeout(GPUAcquisitionError):
    """The diagnostic tool did not finish before the deadline and was killed."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"{path} timed out after {timeout}s")


class ToolFailure(GPUAcquisitionError):
    """The diagnostic tool exited non-zero or wrote to stderr."""

    def __init__(self, path: str, returncode: Optional[int], stdout: str = "", stderr: str = ""):
        self.path = path
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        stdout_msg = stdout.strip() or "(empty)"
        stderr_msg = stderr.strip() or "(empty)"
        super().__init__(
            f"{path} failed with exit code {returncode}, stdout: {stdout_msg}, stderr: {stderr_msg}"
        )


class TelemetryParseError(GPUAcquisitionError):
    """The tool output did not match the expected tabular schema."""

    def __init__(self, message: str, line: Optional[str] = None):
        self.line = line
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)


class ToolNotFound(GPUAcquisitionError):
    """No diagnostic tool binary exists at any candidate location."""

    def __init__(self, candidates: list[str]):
        self.candidates = candidates
        super().__init__(f"nvidia-smi not found in any of: {candidates}")
