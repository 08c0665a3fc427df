"""
Secure, read-only extraction of git repository context.

    >>> from git_context import get_git_context
    >>> context = get_git_context({"max_commits": 5})
    >>> payload = context.to_payload()
"""
import git_context.core.collectors  # noqa: F401
from git_context.config import Settings, load_settings
from git_context.core.contracts.models import (
    BranchInfo,
    ChangedFile,
    Commit,
    DetachedHead,
    DiffFile,
    DiffHunk,
    DiffStats,
    GitContext,
    GitContextOptions,
    GitStatus,
    LocalBranch,
    ParsedDiff,
    RenamedFile,
    RepositoryInfo,
    TrackingBranch,
)
from git_context.core.executor import GitExecutor, exec_safe, sanitize_error
from git_context.core.pipeline import get_git_context, get_git_context_async
from git_context.core.sanitizer import (
    ContextSanitizer,
    sanitize_commit,
    sanitize_commit_message,
    sanitize_file_path,
    sanitize_for_ai,
    sanitize_remote_url,
)
from git_context.core.validators import (
    validate_args,
    validate_branch_name,
    validate_commit_hash,
    validate_file_path,
    validate_remote_url,
    validate_short_commit_hash,
)
from git_context.utils.errors import (
    BufferExceededError,
    ConfigError,
    ExecutionError,
    GitContextError,
    GitTimeoutError,
    ToolNotFoundError,
    ValidationError,
)
from git_context.utils.git import (
    find_git_root,
    get_branch_info,
    get_changed_files,
    get_commits_since,
    get_current_branch_name,
    get_diff_file_count,
    get_diff_stats,
    get_git_status,
    get_latest_commit,
    get_remote_url,
    get_upstream_branch,
    has_staged_changes,
    is_git_repository,
    is_tracking_upstream,
    is_working_directory_clean,
)
from git_context.utils.logger import setup_logger

__version__ = "0.1.0"

__all__ = [
    "BranchInfo",
    "BufferExceededError",
    "ChangedFile",
    "Commit",
    "ConfigError",
    "ContextSanitizer",
    "DetachedHead",
    "DiffFile",
    "DiffHunk",
    "DiffStats",
    "ExecutionError",
    "GitContext",
    "GitContextError",
    "GitContextOptions",
    "GitExecutor",
    "GitStatus",
    "GitTimeoutError",
    "LocalBranch",
    "ParsedDiff",
    "RenamedFile",
    "RepositoryInfo",
    "Settings",
    "ToolNotFoundError",
    "TrackingBranch",
    "ValidationError",
    "exec_safe",
    "find_git_root",
    "get_branch_info",
    "get_changed_files",
    "get_commits_since",
    "get_current_branch_name",
    "get_diff_file_count",
    "get_diff_stats",
    "get_git_context",
    "get_git_context_async",
    "get_git_status",
    "get_latest_commit",
    "get_remote_url",
    "get_upstream_branch",
    "has_staged_changes",
    "is_git_repository",
    "is_tracking_upstream",
    "is_working_directory_clean",
    "load_settings",
    "sanitize_commit",
    "sanitize_commit_message",
    "sanitize_error",
    "sanitize_file_path",
    "sanitize_for_ai",
    "sanitize_remote_url",
    "setup_logger",
    "validate_args",
    "validate_branch_name",
    "validate_commit_hash",
    "validate_file_path",
    "validate_remote_url",
    "validate_short_commit_hash",
]
