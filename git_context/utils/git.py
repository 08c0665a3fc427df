"""
Synchronous helpers that answer one question about a repository.

Each helper runs through :class:`~git_context.core.executor.GitExecutor`, so the
same validation, read-only allow-list, environment scrubbing and limits apply
as for a full snapshot. Like :func:`~git_context.core.executor.exec_safe`, they
must not be called from inside a running event loop.
"""
import asyncio
from datetime import datetime
from typing import Iterable, Optional, Tuple

from git_context.config.models import ExecutorConfig
from git_context.core.collectors.branch_collector import parse_branch_header
from git_context.core.collectors.diff_collector import parse_numstat
from git_context.core.collectors.log_collector import LOG_FORMAT, parse_log
from git_context.core.collectors.status_collector import changed_files_from_status, parse_status
from git_context.core.contracts.models import (
    BranchInfo,
    ChangedFile,
    Commit,
    DetachedHead,
    DiffStats,
    GitStatus,
    TrackingBranch,
)
from git_context.core.executor import CommandResult, GitExecutor, PathLike
from git_context.core.redaction import redact_credentials
from git_context.core.sanitizer import sanitize_commit
from git_context.utils.errors import ExecutionError, ValidationError

DEFAULT_COMMITS_SINCE_LIMIT = 100


def _run(
    args: Iterable[str],
    cwd: Optional[PathLike],
    config: Optional[ExecutorConfig],
    ok_returncodes: Tuple[int, ...] = (0,),
) -> CommandResult:
    executor = GitExecutor(config, cwd=cwd)
    return asyncio.run(executor.run(args, ok_returncodes=ok_returncodes))


def is_git_repository(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> bool:
    """Checks if ``cwd`` (default: the current directory) is inside a git work tree."""
    try:
        result = _run(["rev-parse", "--is-inside-work-tree"], cwd, config)
    except (ExecutionError, ValidationError):
        return False
    return result.stdout.strip() == "true"


def find_git_root(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> str:
    """
    Gets the absolute path of the repository's top-level directory.

    Raises:
        ExecutionError: If ``cwd`` is not inside a git repository.
    """
    return _run(["rev-parse", "--show-toplevel"], cwd, config).stdout.strip()


def get_remote_url(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> Optional[str]:
    """Gets the ``origin`` URL with embedded credentials redacted, or None."""
    # Exit code 1 means the key is unset.
    result = _run(["config", "--get", "remote.origin.url"], cwd, config, ok_returncodes=(0, 1))
    remote = result.stdout.strip()
    return redact_credentials(remote) if remote else None


def get_branch_info(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> BranchInfo:
    result = _run(["status", "--porcelain=v2", "--branch", "-z", "--untracked-files=no"], cwd, config)
    return parse_branch_header(result.stdout)


def get_current_branch_name(
    cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None
) -> Optional[str]:
    """
    Gets the current branch name.

    Returns:
        The branch name, also before the first commit; None on a detached HEAD.
    """
    branch = get_branch_info(cwd, config=config)
    if isinstance(branch, DetachedHead):
        return None
    return branch.current


def get_upstream_branch(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> Optional[str]:
    """Gets the upstream of the current branch, e.g. ``origin/main``, or None."""
    branch = get_branch_info(cwd, config=config)
    return branch.upstream if isinstance(branch, TrackingBranch) else None


def is_tracking_upstream(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> bool:
    return get_upstream_branch(cwd, config=config) is not None


def get_git_status(
    cwd: Optional[PathLike] = None,
    *,
    include_untracked: bool = True,
    config: Optional[ExecutorConfig] = None,
) -> GitStatus:
    untracked = "normal" if include_untracked else "no"
    result = _run(["status", "--porcelain=v2", "-z", f"--untracked-files={untracked}"], cwd, config)
    return parse_status(result.stdout)


def get_changed_files(
    cwd: Optional[PathLike] = None,
    *,
    include_untracked: bool = True,
    config: Optional[ExecutorConfig] = None,
) -> Tuple[ChangedFile, ...]:
    status = get_git_status(cwd, include_untracked=include_untracked, config=config)
    return changed_files_from_status(status)


def is_working_directory_clean(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> bool:
    """
    Checks that nothing tracked has changed. Untracked files are ignored.
    """
    return get_git_status(cwd, include_untracked=False, config=config).is_empty()


def has_staged_changes(cwd: Optional[PathLike] = None, *, config: Optional[ExecutorConfig] = None) -> bool:
    """Checks if there are any staged changes."""
    # --quiet exits with 1 if there are changes, 0 otherwise.
    result = _run(["diff", "--cached", "--quiet"], cwd, config, ok_returncodes=(0, 1))
    return result.returncode == 1


def get_diff_stats(
    cwd: Optional[PathLike] = None,
    *,
    staged: bool = False,
    config: Optional[ExecutorConfig] = None,
) -> DiffStats:
    """
    Counts changed files and lines without reading the diff body.

    Args:
        cwd: Directory inside the repository.
        staged: Compare the index with HEAD instead of the work tree with the index.
        config: Executor limits; defaults apply when omitted.
    """
    args = ["diff", "--numstat", "--no-color", "--no-ext-diff", "--no-textconv", "--find-renames"]
    if staged:
        args.append("--cached")
    return parse_numstat(_run(args, cwd, config).stdout)


def get_diff_file_count(
    cwd: Optional[PathLike] = None,
    *,
    staged: bool = False,
    config: Optional[ExecutorConfig] = None,
) -> int:
    return get_diff_stats(cwd, staged=staged, config=config).files_changed


def _log(
    options: Iterable[str],
    limit: int,
    sanitize: bool,
    cwd: Optional[PathLike],
    config: Optional[ExecutorConfig],
) -> Tuple[Commit, ...]:
    executor = GitExecutor(config, cwd=cwd)

    async def read() -> str:
        head = await executor.run(["rev-parse", "--verify", "--quiet", "HEAD"], ok_returncodes=(0, 1))
        if head.returncode != 0:
            return ""
        result = await executor.run([
            "log",
            "-z",
            "--no-color",
            f"--max-count={limit}",
            f"--pretty=format:{LOG_FORMAT}",
            *options,
            "HEAD",
        ])
        return result.stdout

    commits = parse_log(asyncio.run(read()))
    if sanitize:
        commits = tuple(sanitize_commit(commit) for commit in commits)
    return commits


def get_latest_commit(
    cwd: Optional[PathLike] = None,
    *,
    sanitize: bool = True,
    config: Optional[ExecutorConfig] = None,
) -> Optional[Commit]:
    """Gets the commit at HEAD, or None before the first commit."""
    commits = _log((), 1, sanitize, cwd, config)
    return commits[0] if commits else None


def get_commits_since(
    since: datetime,
    cwd: Optional[PathLike] = None,
    *,
    until: Optional[datetime] = None,
    limit: int = DEFAULT_COMMITS_SINCE_LIMIT,
    sanitize: bool = True,
    config: Optional[ExecutorConfig] = None,
) -> Tuple[Commit, ...]:
    """
    Gets commits reachable from HEAD that were committed after ``since``.

    Args:
        since: Lower bound on the commit date. Naive datetimes are read by git
            as local time.
        cwd: Directory inside the repository.
        until: Optional upper bound on the commit date.
        limit: Maximum number of commits, newest first.
        sanitize: Apply AI sanitization to messages and author fields.
        config: Executor limits; defaults apply when omitted.

    Returns:
        The commits, empty before the first commit.

    Raises:
        ValidationError: If ``limit`` is not a positive integer.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("limit_positive", limit, "limit must be a positive integer")

    options = [f"--since={since.isoformat(timespec='seconds')}"]
    if until is not None:
        options.append(f"--until={until.isoformat(timespec='seconds')}")
    return _log(options, limit, sanitize, cwd, config)
