from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    """Immutable model serialized with camelCase keys for downstream consumers."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RepositoryInfo(_Frozen):
    root: str
    remote_url: Optional[str] = None
    is_clean: bool


class TrackingBranch(_Frozen):
    kind: Literal["tracking"] = "tracking"
    current: str
    upstream: str
    ahead: int = 0
    behind: int = 0


class LocalBranch(_Frozen):
    """A branch without an upstream. ``unborn`` is set before the first commit."""

    kind: Literal["local"] = "local"
    current: str
    unborn: bool = False


class DetachedHead(_Frozen):
    kind: Literal["detached"] = "detached"
    commit_hash: str


BranchInfo = Annotated[Union[TrackingBranch, LocalBranch, DetachedHead], Field(discriminator="kind")]


class RenamedFile(_Frozen):
    old_path: str
    new_path: str


class GitStatus(_Frozen):
    staged: Tuple[str, ...] = ()
    modified: Tuple[str, ...] = ()
    untracked: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()
    renamed: Tuple[RenamedFile, ...] = ()
    conflicted: Tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.staged or self.modified or self.untracked or self.deleted or self.renamed or self.conflicted)


ChangeStatus = Literal["staged", "modified", "untracked", "deleted", "renamed", "conflicted"]


class ChangedFile(_Frozen):
    path: str
    status: ChangeStatus


class Commit(_Frozen):
    hash: str
    short_hash: str
    author: str
    email: str
    date: datetime
    message: str
    subject: str
    body: str


class DiffHunk(_Frozen):
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    header: str = ""
    lines: Tuple[str, ...] = ()


class DiffFile(_Frozen):
    path: str
    old_path: Optional[str] = None
    status: Literal["added", "modified", "deleted", "renamed", "copied"] = "modified"
    binary: bool = False
    additions: int = 0
    deletions: int = 0
    hunks: Tuple[DiffHunk, ...] = ()


class DiffStats(_Frozen):
    files_changed: int = 0
    additions: int = 0
    deletions: int = 0


class ParsedDiff(_Frozen):
    files: Tuple[DiffFile, ...] = ()
    stats: DiffStats = Field(default_factory=DiffStats)


class GitContext(_Frozen):
    """Snapshot of a repository's state, built fresh for every request."""

    repository: RepositoryInfo
    branch: BranchInfo
    status: GitStatus
    recent_commits: Tuple[Commit, ...] = ()
    diff: ParsedDiff = Field(default_factory=ParsedDiff)
    changed_files: Tuple[ChangedFile, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        """Returns the camelCase, JSON-compatible wire representation."""
        return self.model_dump(mode="json", by_alias=True)


class GitContextOptions(_Frozen):
    """Per-call options. ``None`` means "use the configured default"."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True, alias_generator=to_camel)

    max_commits: Optional[int] = Field(None, ge=1)
    diff_context: Optional[int] = Field(None, ge=0)
    sanitize_for_ai: Optional[bool] = None
    include_untracked: Optional[bool] = None
    staged_diff: bool = False
    diff_revision: Optional[str] = None
    paths: Tuple[str, ...] = ()
    log_branch: Optional[str] = None
    cwd: Optional[Path] = None
