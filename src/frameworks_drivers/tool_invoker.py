"""
Bounded execution of external diagnostic tools.
"""
import os
import signal
import subprocess
from typing import Dict, Optional, Sequence

from src.frameworks_drivers.config import GPUConfig
from src.shared.errors import InvocationTimeout, LaunchFailure, ToolFailure
from src.shared.logger import Logger

logger = Logger.get(__name__)


class ToolInvoker:
    """
    Runs a diagnostic tool as a child process under a hard wall-clock timeout.

    The child gets its own session, so on timeout the whole process group is killed,
    including anything the tool forked. The child is reaped and its pipes are closed
    on every exit path.
    """

    DRAIN_TIMEOUT = 1.0  # Seconds to collect output after a kill

    def __init__(self, config: Optional[GPUConfig] = None):
        config = config or GPUConfig()
        self.default_timeout = config.tool_timeout_seconds
        self.host_path_prefix = config.host_path_prefix
        self.host_library_path = config.host_library_path

    def invoke(self, path: str, args: Sequence[str], timeout: Optional[float] = None) -> str:
        """
        Run ``path`` with ``args`` and return its standard output.

        Args:
            path: Executable to run.
            args: Command-line arguments.
            timeout: Deadline in seconds, defaults to the configured tool timeout.

        Returns:
            The decoded standard output.

        Raises:
            LaunchFailure: The process could not be spawned.
            InvocationTimeout: The process did not finish in time and was killed.
            ToolFailure: Non-zero exit status or anything written to stderr.
        """
        if timeout is None:
            timeout = self.default_timeout

        try:
            process = subprocess.Popen(
                [path, *args],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._build_env(path),
                start_new_session=True,
            )
        except OSError as e:
            raise LaunchFailure(path, str(e)) from e

        with process:
            try:
                stdout, stderr = process.communicate(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning(f"{path} timed out after {timeout}s, killing process")
                self._kill_process_group(process)
                self._drain_pipes(process)
                raise InvocationTimeout(path, timeout)
            except BaseException:
                # Interrupted while waiting: never leave the child running
                self._kill_process_group(process)
                raise

        stdout_text = self._decode(stdout)
        stderr_text = self._decode(stderr)
        if process.returncode != 0 or stderr_text.strip():
            raise ToolFailure(path, process.returncode, stdout_text, stderr_text)
        return stdout_text

    def _build_env(self, path: str) -> Dict[str, str]:
        env = dict(os.environ)
        # Host-mounted binaries need the host driver libraries. Container-injected
        # binaries ship their own.
        if self.host_path_prefix and path.startswith(self.host_path_prefix):
            env["LD_LIBRARY_PATH"] = self.host_library_path
        return env

    @staticmethod
    def _kill_process_group(process: subprocess.Popen) -> None:
        """Kill the child and its process group unconditionally, then reap it."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            # Group already gone, fall back to the direct child
            try:
                process.kill()
            except ProcessLookupError:
                pass
        process.wait()

    @classmethod
    def _drain_pipes(cls, process: subprocess.Popen) -> None:
        """Collect leftover output of a killed child without waiting on stray descendants."""
        try:
            process.communicate(timeout=cls.DRAIN_TIMEOUT)
        except subprocess.TimeoutExpired:
            # A descendant that left the process group still holds the pipes open
            logger.warning(f"Output pipes of killed process {process.pid} still open, closing them")
            for pipe in (process.stdout, process.stderr):
                if pipe is not None:
                    pipe.close()

    @staticmethod
    def _decode(data: Optional[bytes]) -> str:
        if not data:
            return ""
        return data.decode("utf-8", errors="replace")
