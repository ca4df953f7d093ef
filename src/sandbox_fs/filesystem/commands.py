"""
Subprocess execution with a clamped timeout and captured output.
"""

import asyncio
import logging
import os
import shlex
import signal
from typing import Mapping, Optional, Sequence, Union

from sandbox_fs.filesystem.config import LocalFileSystemConfig
from sandbox_fs.filesystem.exceptions import CommandError
from sandbox_fs.filesystem.models import CommandResult
from sandbox_fs.filesystem.paths import PathLike, PathResolver

logger = logging.getLogger(__name__)

MIN_TIMEOUT_SECONDS = 5.0
MAX_TIMEOUT_SECONDS = 600.0
DEFAULT_TIMEOUT_SECONDS = 60.0

_READ_CHUNK = 64 * 1024
_POSIX = os.name == "posix"

Command = Union[str, Sequence[str]]


def clamp_timeout(
    timeout_seconds: Optional[float], default: float = DEFAULT_TIMEOUT_SECONDS
) -> float:
    """Clamp a timeout into [5, 600] seconds; None means the default."""
    if timeout_seconds is None:
        timeout_seconds = default
    return max(MIN_TIMEOUT_SECONDS, min(float(timeout_seconds), MAX_TIMEOUT_SECONDS))


def merge_environment(
    ambient: Mapping[str, str], overrides: Optional[Mapping[str, Optional[str]]] = None
) -> dict[str, str]:
    """
    Merge caller overrides into a snapshot of the ambient environment.

    Caller keys win. An override of None removes the variable.
    """
    env = dict(ambient)
    for key, value in (overrides or {}).items():
        if value is None:
            env.pop(key, None)
        else:
            env[key] = str(value)
    return env


class _OutputLimitExceeded(Exception):
    def __init__(self, stream: str):
        self.stream = stream
        super().__init__(stream)


async def _drain(
    stream: asyncio.StreamReader, buffer: bytearray, limit: int, name: str
) -> None:
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        buffer.extend(chunk)
        if len(buffer) > limit:
            del buffer[limit:]
            raise _OutputLimitExceeded(name)


class CommandRunner:
    """
    Runs commands with the working directory confined to the root.

    A list is executed directly (no shell); a string goes through the
    shell, so pipes and redirection work. Subprocess failures never raise:
    non-zero exit, timeout, output overflow and spawn errors all come
    back as a CommandResult with ok=False. Only an empty command or a
    working directory outside the root raises.

    Usage:
        runner = CommandRunner(resolver, config)
        result = await runner.run(["git", "status"], timeout_seconds=30)
        if not result.ok:
            print(result.error, result.stderr)
    """

    def __init__(self, resolver: PathResolver, config: LocalFileSystemConfig):
        self.resolver = resolver
        self.config = config

    async def run(
        self,
        command: Command,
        timeout_seconds: Optional[float] = None,
        env: Optional[Mapping[str, Optional[str]]] = None,
        working_directory: PathLike = "./",
    ) -> CommandResult:
        """
        Execute a command and capture its output.

        Args:
            command: Argument vector or shell string
            timeout_seconds: Timeout, clamped to [5, 600] (default from config)
            env: Variables merged over the current environment
            working_directory: Directory to run in, relative to the root

        Returns:
            CommandResult

        Raises:
            CommandError: If the command is missing or an empty list
            PathOutsideRootError: If the working directory escapes the root
        """
        argv: Optional[list[str]] = None
        if isinstance(command, str):
            if not command:
                raise CommandError("Command is required")
            display = command
        elif command is None:
            raise CommandError("Command is required")
        else:
            argv = [os.fspath(part) for part in command]
            if not argv:
                raise CommandError("Command array cannot be empty")
            display = shlex.join(argv)

        cwd = self.resolver.resolve_absolute(working_directory or ".")
        timeout = clamp_timeout(timeout_seconds, self.config.default_timeout_seconds)
        environment = merge_environment(os.environ, env)
        limit = self.config.max_output_bytes

        logger.debug(f"Running command in {cwd} (timeout {timeout:g}s): {display}")

        spawn_options = dict(
            cwd=cwd,
            env=environment,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_POSIX,
        )
        try:
            if argv is not None:
                proc = await asyncio.create_subprocess_exec(*argv, **spawn_options)
            else:
                proc = await asyncio.create_subprocess_shell(display, **spawn_options)
        except (OSError, ValueError) as e:
            logger.warning(f"Command failed to start: {display}: {e}")
            return CommandResult(
                ok=False,
                exit_code=1,
                error=f"Command failed to start: {e}",
            )

        stdout = bytearray()
        stderr = bytearray()
        readers = [
            asyncio.ensure_future(_drain(proc.stdout, stdout, limit, "stdout")),
            asyncio.ensure_future(_drain(proc.stderr, stderr, limit, "stderr")),
        ]

        error: Optional[str] = None
        try:
            await asyncio.wait_for(asyncio.gather(*readers, proc.wait()), timeout=timeout)
        except asyncio.TimeoutError:
            error = f"Command timed out after {timeout:g} seconds: {display}"
        except _OutputLimitExceeded as e:
            error = f"{e.stream} maxBuffer exceeded ({limit} bytes): {display}"
        finally:
            for reader in readers:
                reader.cancel()
            # Retrieve reader exceptions
            await asyncio.gather(*readers, return_exceptions=True)

        if error is not None:
            await self._kill(proc)
            logger.warning(error)
            return CommandResult(
                ok=False,
                exit_code=1,
                stdout=self._decode(stdout),
                stderr=self._decode(stderr),
                error=error,
            )

        returncode = proc.returncode
        if returncode == 0:
            logger.info(f"Command succeeded: {display}")
            return CommandResult(
                ok=True,
                exit_code=0,
                stdout=self._decode(stdout),
                stderr=self._decode(stderr),
            )

        if returncode is None or returncode < 0:
            signum = -returncode if returncode else None
            error = f"Command was killed with signal {signum}: {display}"
            exit_code = 1
        else:
            error = f"Command failed with exit code {returncode}: {display}"
            exit_code = returncode

        logger.info(error)
        return CommandResult(
            ok=False,
            exit_code=exit_code,
            stdout=self._decode(stdout),
            stderr=self._decode(stderr),
            error=error,
        )

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        try:
            if _POSIX:
                # The child leads its own session; take its children down too
                os.killpg(proc.pid, signal.SIGKILL)
            elif proc.returncode is None:
                proc.kill()
        except ProcessLookupError:
            pass

        try:
            await asyncio.wait_for(proc.wait(), timeout=MIN_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.error(f"Process {proc.pid} did not exit after being killed")

    def _decode(self, data: bytearray) -> str:
        return bytes(data).decode(self.config.encoding, errors="replace").strip()
