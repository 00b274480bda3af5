"""
CLI Runner — Bounded influxdb3 Subprocess Execution

Some InfluxDB 3 operations (last-value caches, token create/delete) have
no REST endpoint, so we drive the `influxdb3` binary.

- stdout/stderr are drained on background threads so the child never
  blocks on a full pipe
- an optional confirmation prompt is answered once when it shows up on
  stdout (`delete token` has no non-interactive flag)
- every call has a hard timeout; a hung child is killed
"""

import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import SubprocessFailed


logger = logging.getLogger(__name__)

DELETE_CONFIRM_PROMPT = "Enter 'yes' to confirm"


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one CLI invocation."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def redact_args(args: Sequence[str]) -> List[str]:
    """Copy of an argument list with the value after --token masked."""
    redacted = list(args)
    for i, arg in enumerate(redacted[:-1]):
        if arg == "--token":
            redacted[i + 1] = "****"
    return redacted


class CliRunner:
    """Runs one CLI command per call; holds no state between calls."""

    def __init__(self, binary: str, timeout: float = 30.0):
        self.binary = binary
        self.timeout = timeout

    def run(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        confirm_prompt: Optional[str] = None,
        confirm_reply: str = "yes\n",
    ) -> CommandResult:
        """
        Execute the binary with `args` and wait for it to exit.

        Args:
            args: Arguments after the binary path
            timeout: Seconds to wait before killing (defaults to self.timeout)
            confirm_prompt: Substring of stdout that triggers `confirm_reply`
            confirm_reply: Text written to stdin when the prompt appears

        Returns:
            CommandResult, whatever the exit code

        Raises:
            SubprocessFailed: If the process cannot be spawned or times out
        """
        timeout = self.timeout if timeout is None else timeout
        command = [self.binary, *args]
        logger.info(f"Running CLI: {' '.join(redact_args(command))}")

        try:
            proc = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise SubprocessFailed(f"Failed to start {self.binary}: {e}", stderr=str(e)) from e

        stdout_chunks: List[bytes] = []
        stderr_chunks: List[bytes] = []
        stdin_lock = threading.Lock()

        def _answer_prompt() -> None:
            with stdin_lock:
                if proc.stdin is None or proc.stdin.closed:
                    return
                try:
                    proc.stdin.write(confirm_reply.encode())
                    proc.stdin.flush()
                except (BrokenPipeError, ValueError, OSError):
                    pass

        def _drain_stdout() -> None:
            answered = False
            fd = proc.stdout.fileno()
            while True:
                chunk = os.read(fd, 4096)
                if not chunk:
                    break
                stdout_chunks.append(chunk)
                if confirm_prompt and not answered:
                    seen = b"".join(stdout_chunks).decode(errors="replace")
                    if confirm_prompt in seen:
                        answered = True
                        _answer_prompt()

        def _drain_stderr() -> None:
            for chunk in iter(lambda: proc.stderr.read(4096), b""):
                stderr_chunks.append(chunk)

        readers = [
            threading.Thread(target=_drain_stdout, daemon=True),
            threading.Thread(target=_drain_stderr, daemon=True),
        ]
        for reader in readers:
            reader.start()

        if confirm_prompt is None:
            with stdin_lock:
                proc.stdin.close()

        try:
            returncode = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            for reader in readers:
                reader.join(timeout=1.0)
            raise SubprocessFailed(
                f"{self.binary} timed out after {timeout:g}s",
                stderr=b"".join(stderr_chunks).decode(errors="replace"),
            )
        finally:
            with stdin_lock:
                if proc.stdin and not proc.stdin.closed:
                    try:
                        proc.stdin.close()
                    except OSError:
                        pass

        for reader in readers:
            reader.join(timeout=1.0)
        proc.stdout.close()
        proc.stderr.close()

        return CommandResult(
            returncode=returncode,
            stdout=b"".join(stdout_chunks).decode(errors="replace"),
            stderr=b"".join(stderr_chunks).decode(errors="replace"),
        )
