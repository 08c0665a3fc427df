"""
Input validation for everything that crosses the subprocess boundary.

All functions are pure: they either return the validated value or raise
:class:`~git_context.utils.errors.ValidationError` naming the violated rule.
"""
import posixpath
import re
from typing import Iterable, List

from git_context.utils.errors import ValidationError

BRANCH_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9/_-]+$")
COMMIT_HASH_PATTERN = re.compile(r"^[a-f0-9]{40}$")
SHORT_COMMIT_HASH_PATTERN = re.compile(r"^[a-f0-9]{7,40}$")
REMOTE_URL_PATTERN = re.compile(r"^(https?://|ssh://|git@|file://)")
SHELL_METACHARACTERS = re.compile(r"[;|&$()`<>]")
WINDOWS_ABSOLUTE = re.compile(r"^([a-zA-Z]:|\\\\)")

MAX_BRANCH_NAME_LENGTH = 255

# Flags the executor may pass through verbatim.
SAFE_FLAGS = frozenset({
    "-z",
    "--branch",
    "--cached",
    "--find-renames",
    "--get",
    "--is-inside-work-tree",
    "--no-color",
    "--no-ext-diff",
    "--no-textconv",
    "--numstat",
    "--quiet",
    "--show-toplevel",
    "--verify",
})

# Flags taking an inline value, matched by their "--name=" prefix.
SAFE_FLAG_PREFIXES = (
    "--porcelain=",
    "--untracked-files=",
    "--unified=",
    "--max-count=",
    "--pretty=",
    "--since=",
    "--until=",
)


def validate_branch_name(name: str) -> str:
    """Validates a branch name such as ``main`` or ``feature/login-form``."""
    if not isinstance(name, str) or not name:
        raise ValidationError("branch_name_empty", name, "Branch name cannot be empty")
    if len(name) > MAX_BRANCH_NAME_LENGTH:
        raise ValidationError("branch_name_too_long", name, "Branch name too long")
    if name.startswith("-"):
        raise ValidationError("branch_name_flag_injection", name, "Flag injection detected")
    if not BRANCH_NAME_PATTERN.match(name):
        raise ValidationError(
            "branch_name_charset", name,
            "Invalid branch name (only alphanumeric, /, _ and - allowed)",
        )
    return name


def validate_commit_hash(value: str) -> str:
    """Validates a full 40-character lowercase SHA-1 commit hash."""
    if not isinstance(value, str) or not COMMIT_HASH_PATTERN.match(value):
        raise ValidationError(
            "commit_hash_format", value,
            "Invalid commit hash (must be 40 lowercase hexadecimal characters)",
        )
    return value


def validate_short_commit_hash(value: str) -> str:
    """Validates an abbreviated commit hash (7 to 40 lowercase hex characters)."""
    if not isinstance(value, str) or not SHORT_COMMIT_HASH_PATTERN.match(value):
        raise ValidationError(
            "short_commit_hash_format", value,
            "Invalid short commit hash (must be 7-40 hexadecimal characters)",
        )
    return value


def validate_file_path(path: str) -> str:
    """
    Validates a repository-relative file path.

    Rejects empty paths, NUL bytes, absolute paths, paths starting with ``-``
    (which git would read as an option) and any ``..`` segment, whether it is
    present in the path as given or survives normalization.
    """
    if not isinstance(path, str) or not path:
        raise ValidationError("file_path_empty", path, "File path cannot be empty")
    if "\0" in path:
        raise ValidationError("file_path_null_byte", path, "Null byte injection detected")
    if path.startswith("-"):
        raise ValidationError("file_path_flag_injection", path, "Flag injection detected")

    unified = path.replace("\\", "/")
    if unified.startswith("/") or WINDOWS_ABSOLUTE.match(path):
        raise ValidationError("file_path_absolute", path, "Absolute paths not allowed")

    normalized = posixpath.normpath(unified)
    if ".." in unified.split("/") or ".." in normalized.split("/"):
        raise ValidationError("file_path_traversal", path, "Path traversal detected")
    return path


def validate_remote_url(url: str) -> str:
    """Validates that a remote URL uses a known git transport."""
    if not isinstance(url, str) or not url:
        raise ValidationError("remote_url_empty", url, "Remote URL cannot be empty")
    if not REMOTE_URL_PATTERN.match(url):
        raise ValidationError(
            "remote_url_protocol", url,
            "Invalid remote URL protocol (must be https://, http://, ssh://, git@, or file://)",
        )
    return url


def _is_safe_flag(arg: str) -> bool:
    return arg in SAFE_FLAGS or arg.startswith(SAFE_FLAG_PREFIXES)


def validate_args(args: Iterable[str]) -> List[str]:
    """
    Validates a git argument vector (without the ``git`` executable itself).

    Every element must be a string free of shell metacharacters, NUL bytes and
    newlines. Elements starting with ``-`` must be known-safe flags.

    Returns:
        The arguments as a new list.
    """
    validated: List[str] = []
    for arg in args:
        if not isinstance(arg, str):
            raise ValidationError("arg_type", arg, "Git arguments must be strings")
        if SHELL_METACHARACTERS.search(arg):
            raise ValidationError("arg_shell_metacharacter", arg, "Shell metacharacter detected in git argument")
        if "\0" in arg or "\n" in arg or "\r" in arg:
            raise ValidationError("arg_control_character", arg, "Control character detected in git argument")
        if arg.startswith("-") and not _is_safe_flag(arg):
            raise ValidationError("arg_unknown_flag", arg, "Flag is not in the allow-list")
        validated.append(arg)
    if not validated:
        raise ValidationError("args_empty", validated, "No git subcommand given")
    return validated
