from typing import Any, Dict, List, Mapping, Tuple

from git_context.core.contracts.collector import Collector
from git_context.core.contracts.models import (
    ChangedFile,
    GitContextOptions,
    GitStatus,
    RenamedFile,
)
from git_context.core.executor import GitExecutor
from git_context.core.registry import collector_registry
from git_context.utils.logger import logger

# Number of space-separated fields before the path, per porcelain v2 entry type.
FIELDS_BEFORE_PATH = {"1": 8, "2": 9, "u": 10}


def _bucket_for(xy: str) -> str:
    index_status, worktree_status = xy[0], xy[1]
    if "D" in xy:
        return "deleted"
    if index_status != ".":
        return "staged"
    if worktree_status != ".":
        return "modified"
    return ""


def parse_status(output: str) -> GitStatus:
    """
    Parses ``git status --porcelain=v2 -z`` output into disjoint buckets.

    Each path is reported once, by precedence: untracked, conflicted, renamed,
    deleted, staged (index side), modified (worktree side). Copies are
    reported as staged under their new path. Ignored and header entries are
    skipped, as are entries too short to parse.
    """
    buckets: Dict[str, List[str]] = {
        "staged": [], "modified": [], "untracked": [], "deleted": [], "conflicted": [],
    }
    renamed: List[RenamedFile] = []

    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        entry = tokens[i].strip("\n")
        i += 1
        if not entry or entry.startswith(("#", "!")):
            continue

        kind = entry[0]
        if kind == "?":
            buckets["untracked"].append(entry[2:])
            continue

        if kind not in FIELDS_BEFORE_PATH:
            logger.debug(f"Skipping unrecognized status entry type {kind!r}")
            continue

        fields = entry.split(" ", FIELDS_BEFORE_PATH[kind])
        if len(fields) <= FIELDS_BEFORE_PATH[kind] or len(fields[1]) != 2:
            logger.debug("Skipping malformed status entry")
            if kind == "2":
                i += 1
            continue
        xy, path = fields[1], fields[-1]

        if kind == "u":
            buckets["conflicted"].append(path)
        elif kind == "2":
            # Rename/copy entries carry the original path in the next token.
            original = tokens[i] if i < len(tokens) else ""
            i += 1
            if fields[8].startswith("R") and original:
                renamed.append(RenamedFile(old_path=original, new_path=path))
            else:
                buckets["staged"].append(path)
        else:
            bucket = _bucket_for(xy)
            if bucket:
                buckets[bucket].append(path)

    return GitStatus(
        staged=tuple(buckets["staged"]),
        modified=tuple(buckets["modified"]),
        untracked=tuple(buckets["untracked"]),
        deleted=tuple(buckets["deleted"]),
        renamed=tuple(renamed),
        conflicted=tuple(buckets["conflicted"]),
    )


def changed_files_from_status(status: GitStatus) -> Tuple[ChangedFile, ...]:
    """
    Derives a flat changed-file list from an already parsed status.
    """
    files: List[ChangedFile] = []
    files.extend(ChangedFile(path=path, status="staged") for path in status.staged)
    files.extend(ChangedFile(path=path, status="modified") for path in status.modified)
    files.extend(ChangedFile(path=path, status="untracked") for path in status.untracked)
    files.extend(ChangedFile(path=path, status="deleted") for path in status.deleted)
    files.extend(ChangedFile(path=rename.new_path, status="renamed") for rename in status.renamed)
    files.extend(ChangedFile(path=path, status="conflicted") for path in status.conflicted)
    return tuple(files)


@collector_registry.register("status")
class StatusCollector(Collector):
    """
    A collector that reports staged, modified, untracked, deleted, renamed and
    conflicted paths.
    """

    def __init__(self, executor: GitExecutor, options: GitContextOptions):
        self._executor = executor
        self._include_untracked = True if options.include_untracked is None else options.include_untracked

    async def collect(self) -> Mapping[str, Any]:
        untracked = "normal" if self._include_untracked else "no"
        result = await self._executor.run(["status", "--porcelain=v2", "-z", f"--untracked-files={untracked}"])
        return {"status": parse_status(result.stdout)}
