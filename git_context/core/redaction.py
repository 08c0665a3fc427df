"""Credential and filesystem-path redaction shared by error and AI sanitization."""
import re
from pathlib import Path
from typing import Optional

# A path component may not continue into the match from the left, so "~/home/x"
# or "/srv/home/x" are left alone and every rewrite stays idempotent.
_NOT_INSIDE_PATH = r"(?<![\w.~/\\-])"
_END_OF_COMPONENT = r"(?=[/\\\s'\":,;)\]]|$)"

URL_USERINFO = re.compile(r"\b([a-zA-Z][a-zA-Z0-9+.-]*://)([^/\s]+)@")
HOME_DIR_PATTERNS = (
    re.compile(_NOT_INSIDE_PATH + r"/Users/[^/\s]+"),
    re.compile(_NOT_INSIDE_PATH + r"/home/[^/\s]+"),
    re.compile(_NOT_INSIDE_PATH + r"[A-Za-z]:\\Users\\[^\\\s]+"),
)
TEMP_DIR_PATTERNS = (
    (re.compile(_NOT_INSIDE_PATH + r"/var/tmp/[^/\s]+"), "/var/tmp/***"),
    (re.compile(_NOT_INSIDE_PATH + r"/tmp/[^/\s]+"), "/tmp/***"),
)


def _userinfo_replacement(match: "re.Match[str]") -> str:
    scheme, userinfo = match.group(1), match.group(2)
    if ":" in userinfo:
        return f"{scheme}***:***@"
    return f"{scheme}***@"


def redact_credentials(text: str) -> str:
    """Replaces ``user:pass@`` in URLs with ``***:***@`` and ``token@`` with ``***@``."""
    return URL_USERINFO.sub(_userinfo_replacement, text)


def replace_path_prefix(text: str, prefix: str, replacement: str) -> str:
    """Replaces whole-component occurrences of an absolute path prefix."""
    prefix = prefix.rstrip("/\\")
    if len(prefix) < 2:
        return text
    pattern = re.compile(_NOT_INSIDE_PATH + re.escape(prefix) + _END_OF_COMPONENT)
    return pattern.sub(lambda _: replacement, text)


def redact_home_paths(text: str, home: Optional[str] = None) -> str:
    """Rewrites home directories (``/Users/x``, ``/home/x``, ``C:\\Users\\x`` and the
    current user's real home) to ``~``."""
    if home is None:
        try:
            home = str(Path.home())
        except RuntimeError:
            home = ""
    text = replace_path_prefix(text, home, "~")
    for pattern in HOME_DIR_PATTERNS:
        text = pattern.sub("~", text)
    return text


def redact_temp_paths(text: str) -> str:
    for pattern, replacement in TEMP_DIR_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
