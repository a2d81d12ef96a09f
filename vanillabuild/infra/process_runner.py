"""
Subprocess infrastructure for vanillabuild.

Runs build-tool commands as blocking child processes. Standard output
and standard error are routed independently: inherited from this
process, or written to a log file (truncating or appending).
"""

import subprocess
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple
import logging

from ..errors import LaunchError

logger = logging.getLogger(__name__)


class OutputPolicy(Enum):
    """Where a child process stream goes."""
    INHERIT = "inherit"
    TRUNCATE = "truncate"
    APPEND = "append"


@dataclass(frozen=True)
class CommandInvocation:
    """
    Everything needed to launch one build-tool command.

    Built immediately before launch and discarded afterwards.
    """
    executable: str
    args: Tuple[str, ...] = ()
    cwd: Path = field(default_factory=Path.cwd)
    stdout: OutputPolicy = OutputPolicy.INHERIT
    stderr: OutputPolicy = OutputPolicy.INHERIT
    log_file: Optional[Path] = None

    def __post_init__(self):
        for policy in (self.stdout, self.stderr):
            if policy is not OutputPolicy.INHERIT and self.log_file is None:
                raise ValueError(f"{policy.value} output requires a log_file")

    @property
    def argv(self) -> List[str]:
        return [self.executable] + list(self.args)

    def command_line(self) -> str:
        return " ".join(self.argv)


class ProcessRunner:
    """
    Launches CommandInvocations and waits for them to exit.

    There is no timeout: a hung build hangs the run.
    """

    def _open_stream(self, stack: ExitStack, policy: OutputPolicy, log_file: Optional[Path]):
        if policy is OutputPolicy.INHERIT:
            return None
        mode = "w" if policy is OutputPolicy.TRUNCATE else "a"
        log_file.parent.mkdir(parents=True, exist_ok=True)
        return stack.enter_context(open(log_file, mode, encoding="utf-8"))

    def run(self, invocation: CommandInvocation) -> int:
        """
        Run the command and block until it exits.

        Args:
            invocation: Command to launch

        Returns:
            The process exit code

        Raises:
            LaunchError: If the log file or the process could not be opened
        """
        cmd_str = invocation.command_line()
        logger.debug(f"Launching in '{invocation.cwd}': {cmd_str}")

        with ExitStack() as stack:
            try:
                stdout = self._open_stream(stack, invocation.stdout, invocation.log_file)
                if invocation.stderr is invocation.stdout and stdout is not None:
                    stderr = subprocess.STDOUT
                else:
                    stderr = self._open_stream(stack, invocation.stderr, invocation.log_file)

                process = subprocess.Popen(
                    invocation.argv,
                    cwd=str(invocation.cwd),
                    stdout=stdout,
                    stderr=stderr,
                )
            except OSError as e:
                logger.error(f"Could not launch {cmd_str}: {e}")
                raise LaunchError(
                    f"Could not launch {invocation.executable}: {e}",
                    executable=invocation.executable,
                    cause=e,
                ) from e

            exit_code = process.wait()

        logger.debug(f"{cmd_str} exited with {exit_code}")
        return exit_code
