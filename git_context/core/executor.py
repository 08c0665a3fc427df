"""
Safe git command execution.

Security measures, applied on every call:

1. Arguments and paths are re-validated here even when the caller already did.
2. git is spawned directly, never through a shell.
3. Pathspec-capable subcommands always get a literal ``--`` before paths.
4. Only read-only subcommands are accepted.
5. Output size and wall-clock time are bounded; the child's whole process
   group is killed on timeout, overflow or cancellation.
6. Error text is sanitized before it leaves this module.
"""
import asyncio
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from git_context.config.models import ExecutorConfig
from git_context.core.redaction import (
    redact_credentials,
    redact_home_paths,
    redact_temp_paths,
    replace_path_prefix,
)
from git_context.core.validators import validate_args, validate_file_path
from git_context.utils.errors import (
    BufferExceededError,
    ExecutionError,
    GitTimeoutError,
    ToolNotFoundError,
    ValidationError,
)
from git_context.utils.logger import logger

# Subcommands that accept a pathspec after "--".
PATHSPEC_SUBCOMMANDS = frozenset({"diff", "log", "show", "grep", "blame", "ls-files"})

READ_ONLY_SUBCOMMANDS = PATHSPEC_SUBCOMMANDS | {"status", "rev-parse", "rev-list", "config"}

# Global options placed before the subcommand. They keep reads from taking
# index locks or launching programs configured inside the repository, and
# keep the "a/" and "b/" diff prefixes the parser expects.
HARDENING_OPTIONS = (
    "--no-pager",
    "--no-optional-locks",
    "-c", "core.fsmonitor=false",
    "-c", "log.showSignature=false",
    "-c", "diff.noprefix=false",
    "-c", "diff.mnemonicPrefix=false",
)

READ_CHUNK_SIZE = 64 * 1024

PathLike = Union[str, Path]


@dataclass(frozen=True)
class CommandResult:
    """Result of a git invocation. ``stderr`` is already sanitized."""

    args: Tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def sanitize_error(message: str, repo_root: Optional[PathLike] = None) -> str:
    """
    Sanitizes error text before it can reach a log line or an AI prompt.

    Redactions:
        - the repository root -> ``.``
        - home directories (``/Users/x``, ``/home/x``, ``C:\\Users\\x``) -> ``~``
        - temp directories -> ``/tmp/***``
        - credentials embedded in URLs -> ``***:***@``
    """
    if repo_root:
        message = replace_path_prefix(message, str(repo_root), ".")
    message = redact_credentials(message)
    message = redact_home_paths(message)
    return redact_temp_paths(message)


def _scrubbed_env() -> Dict[str, str]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("GIT_")}
    env.update({"GIT_TERMINAL_PROMPT": "0", "GIT_PAGER": "cat", "LC_ALL": "C"})
    return env


def _check_read_only(args: Sequence[str]) -> None:
    subcommand = args[0]
    if subcommand.startswith("-"):
        raise ValidationError("subcommand_missing", subcommand, "First git argument must be a subcommand")
    if subcommand not in READ_ONLY_SUBCOMMANDS:
        raise ValidationError("subcommand_not_read_only", subcommand, f"git {subcommand} is not a permitted read-only subcommand")
    if subcommand == "config" and "--get" not in args:
        raise ValidationError("subcommand_not_read_only", subcommand, "git config is only permitted with --get")


async def _drain(stream: asyncio.StreamReader, limit: int, label: str) -> bytes:
    chunks: List[bytes] = []
    size = 0
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            return b"".join(chunks)
        size += len(chunk)
        if size > limit:
            raise BufferExceededError(
                f"git {label} exceeded the output limit of {limit} bytes; narrow the request "
                "(fewer commits, less diff context or a path filter)",
                limit_bytes=limit,
            )
        chunks.append(chunk)


async def _kill_process_group(process: "asyncio.subprocess.Process") -> None:
    """Kills the child and everything it spawned, then reaps it."""
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, signal.SIGKILL)
        elif process.returncode is None:
            process.kill()
    except (ProcessLookupError, PermissionError):
        pass
    await asyncio.shield(process.wait())


class GitExecutor:
    """
    Runs validated, read-only git commands in one working directory.

    Example:
        >>> executor = GitExecutor(cwd="/path/to/repo")
        >>> result = await executor.run(["status", "--porcelain=v2", "-z"])
    """

    def __init__(self, config: Optional[ExecutorConfig] = None, cwd: Optional[PathLike] = None):
        self.config = config or ExecutorConfig()
        self.cwd = str(cwd) if cwd is not None else None

    def sanitize(self, message: str) -> str:
        return sanitize_error(message, repo_root=self.cwd)

    def build_command(self, args: Iterable[str], paths: Iterable[str] = ()) -> List[str]:
        """
        Validates ``args`` and ``paths`` and returns the full argv.

        Raises:
            ValidationError: If any argument or path is rejected.
        """
        validated = validate_args(args)
        checked_paths = [validate_file_path(path) for path in paths]
        _check_read_only(validated)

        tail: List[str] = []
        if validated[0] in PATHSPEC_SUBCOMMANDS:
            tail = ["--", *checked_paths]
        elif checked_paths:
            raise ValidationError("paths_unsupported", validated[0], f"git {validated[0]} does not take paths")
        return [self.config.git_binary, *HARDENING_OPTIONS, *validated, *tail]

    async def run(
        self,
        args: Iterable[str],
        *,
        paths: Iterable[str] = (),
        ok_returncodes: Tuple[int, ...] = (0,),
    ) -> CommandResult:
        """
        Executes a git command.

        Args:
            args: git arguments without the executable, e.g. ``["status", "-z"]``.
            paths: Repository-relative paths, placed after ``--``.
            ok_returncodes: Exit codes treated as success.

        Returns:
            The command result.

        Raises:
            ValidationError: If arguments, paths or the working directory are rejected.
            ToolNotFoundError: If the git executable is missing.
            ExecutionError: If git exits with a code outside ``ok_returncodes``.
            GitTimeoutError: If the call exceeds ``timeout_sec``.
            BufferExceededError: If output exceeds ``max_output_bytes``.
        """
        command = self.build_command(args, paths)
        subcommand = command[len(HARDENING_OPTIONS) + 1]
        if self.cwd is not None and not os.path.isdir(self.cwd):
            raise ValidationError("cwd_not_directory", self.sanitize(self.cwd), "Working directory does not exist")

        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=self.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=_scrubbed_env(),
                start_new_session=True,
            )
        except FileNotFoundError:
            raise ToolNotFoundError(
                f"Git executable '{self.sanitize(self.config.git_binary)}' not found. Is git installed and on PATH?"
            ) from None
        except OSError as e:
            raise ExecutionError(self.sanitize(f"Could not start git: {e.strerror or e}")) from None

        try:
            stdout, stderr = await asyncio.wait_for(
                self._communicate(process, subcommand), timeout=self.config.timeout_sec
            )
        except asyncio.TimeoutError:
            await _kill_process_group(process)
            logger.warning(f"git {subcommand} timed out after {self.config.timeout_sec}s")
            raise GitTimeoutError(
                f"git {subcommand} exceeded the time limit of {self.config.timeout_sec}s",
                timeout_sec=self.config.timeout_sec,
            ) from None
        except BaseException:
            # Buffer overflow or caller cancellation.
            await _kill_process_group(process)
            raise

        returncode = process.returncode if process.returncode is not None else -1
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug(f"git {subcommand} exited {returncode} in {elapsed_ms:.1f}ms")

        stderr_text = self.sanitize(stderr.decode("utf-8", errors="replace"))
        if returncode not in ok_returncodes:
            raise ExecutionError(
                f"git {subcommand} failed with exit code {returncode}: {stderr_text.strip() or 'No error message'}",
                returncode=returncode,
            )
        return CommandResult(
            args=tuple(command),
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr_text,
        )

    async def _communicate(self, process: "asyncio.subprocess.Process", subcommand: str) -> Tuple[bytes, bytes]:
        limit = self.config.max_output_bytes
        stdout_task = asyncio.ensure_future(_drain(process.stdout, limit, subcommand))
        stderr_task = asyncio.ensure_future(_drain(process.stderr, limit, subcommand))
        try:
            stdout, stderr = await asyncio.gather(stdout_task, stderr_task)
        finally:
            stdout_task.cancel()
            stderr_task.cancel()
        await process.wait()
        return stdout, stderr


def exec_safe(
    args: Iterable[str],
    *,
    paths: Iterable[str] = (),
    cwd: Optional[PathLike] = None,
    ok_returncodes: Tuple[int, ...] = (0,),
    config: Optional[ExecutorConfig] = None,
) -> str:
    """
    Synchronous convenience wrapper returning git's stdout.

    Must not be called from inside a running event loop; use
    :meth:`GitExecutor.run` there.
    """
    executor = GitExecutor(config, cwd=cwd)
    result = asyncio.run(executor.run(args, paths=paths, ok_returncodes=ok_returncodes))
    return result.stdout
