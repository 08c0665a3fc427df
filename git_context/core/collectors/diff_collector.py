import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from git_context.core.contracts.collector import Collector
from git_context.core.contracts.models import (
    DiffFile,
    DiffHunk,
    DiffStats,
    GitContextOptions,
    ParsedDiff,
)
from git_context.core.executor import GitExecutor
from git_context.core.registry import collector_registry
from git_context.core.validators import validate_commit_hash

DEFAULT_DIFF_CONTEXT = 3
HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@ ?(.*)$")
SPLIT_HEADER_PATHS = re.compile(r'^("?a/.+?"?) ("?b/.+"?)$')


def unquote_path(token: str) -> str:
    """Decodes a C-style quoted path as emitted by git for unusual file names."""
    if len(token) < 2 or not (token.startswith('"') and token.endswith('"')):
        return token
    inner = token[1:-1]
    try:
        decoded = inner.encode("latin-1", "backslashreplace").decode("unicode_escape")
        return decoded.encode("latin-1").decode("utf-8", errors="replace")
    except UnicodeError:
        return inner


def _strip_side(path: str, prefix: str) -> str:
    path = unquote_path(path)
    return path[len(prefix):] if path.startswith(prefix) else path


def _paths_from_git_header(rest: str) -> Tuple[str, str]:
    # "a/P b/P": symmetric when the path did not change, even if P has spaces.
    if not rest.startswith('"') and (len(rest) - 5) % 2 == 0:
        length = (len(rest) - 5) // 2
        if rest[:2] == "a/" and rest[length + 2:length + 5] == " b/" and rest[2:length + 2] == rest[length + 5:]:
            return rest[2:length + 2], rest[length + 5:]
    match = SPLIT_HEADER_PATHS.match(rest)
    if match:
        return _strip_side(match.group(1), "a/"), _strip_side(match.group(2), "b/")
    return rest, rest


@dataclass
class _HunkBuilder:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    header: str
    old_remaining: int
    new_remaining: int
    lines: List[str] = field(default_factory=list)

    @property
    def open(self) -> bool:
        return self.old_remaining > 0 or self.new_remaining > 0

    def build(self) -> DiffHunk:
        return DiffHunk(
            old_start=self.old_start,
            old_lines=self.old_lines,
            new_start=self.new_start,
            new_lines=self.new_lines,
            header=self.header,
            lines=tuple(self.lines),
        )


@dataclass
class _FileBuilder:
    path: str
    old_path: Optional[str]
    status: str = "modified"
    binary: bool = False
    additions: int = 0
    deletions: int = 0
    in_body: bool = False
    hunks: List[_HunkBuilder] = field(default_factory=list)

    def build(self) -> DiffFile:
        old_path = self.old_path if self.status in ("renamed", "copied") else None
        return DiffFile(
            path=self.path,
            old_path=old_path,
            status=self.status,
            binary=self.binary,
            additions=self.additions,
            deletions=self.deletions,
            hunks=tuple(hunk.build() for hunk in self.hunks),
        )


def _start_hunk(line: str) -> Optional[_HunkBuilder]:
    match = HUNK_HEADER.match(line)
    if not match:
        return None
    old_lines = int(match.group(2)) if match.group(2) is not None else 1
    new_lines = int(match.group(4)) if match.group(4) is not None else 1
    return _HunkBuilder(
        old_start=int(match.group(1)),
        old_lines=old_lines,
        new_start=int(match.group(3)),
        new_lines=new_lines,
        header=match.group(5),
        old_remaining=old_lines,
        new_remaining=new_lines,
    )


def _consume_hunk_line(current: _FileBuilder, hunk: _HunkBuilder, line: str) -> bool:
    """Adds one body line to ``hunk``. Returns False if ``line`` is not a body line."""
    if line.startswith("\\"):
        # "\ No newline at end of file"
        return True
    tag = line[:1]
    if tag == "+":
        hunk.new_remaining -= 1
        current.additions += 1
    elif tag == "-":
        hunk.old_remaining -= 1
        current.deletions += 1
    elif tag == " " or line == "":
        hunk.old_remaining -= 1
        hunk.new_remaining -= 1
    else:
        return False
    hunk.lines.append(line)
    return True


def _apply_header_line(current: _FileBuilder, line: str) -> None:
    if line.startswith("new file mode"):
        current.status = "added"
    elif line.startswith("deleted file mode"):
        current.status = "deleted"
    elif line.startswith("rename from "):
        current.status = "renamed"
        current.old_path = unquote_path(line[len("rename from "):])
    elif line.startswith("rename to "):
        current.path = unquote_path(line[len("rename to "):])
    elif line.startswith("copy from "):
        current.status = "copied"
        current.old_path = unquote_path(line[len("copy from "):])
    elif line.startswith("copy to "):
        current.path = unquote_path(line[len("copy to "):])
    elif line.startswith("Binary files ") or line == "GIT binary patch":
        current.binary = True
    elif line.startswith("--- "):
        side = line[4:]
        if side != "/dev/null":
            current.old_path = _strip_side(side, "a/")
    elif line.startswith("+++ "):
        side = line[4:]
        if side != "/dev/null":
            current.path = _strip_side(side, "b/")


def parse_diff(output: str) -> ParsedDiff:
    """
    Parses unified ``git diff`` output into files, hunks and aggregate stats.

    Hunk bodies are bounded by the line counts in their ``@@`` header, so
    removed lines that look like ``--- x`` are never read as file headers.
    Combined (``diff --cc``) sections produced during a merge are listed
    without hunks.
    """
    files: List[_FileBuilder] = []
    current: Optional[_FileBuilder] = None
    hunk: Optional[_HunkBuilder] = None

    for line in output.split("\n"):
        if current is not None and hunk is not None and hunk.open:
            if _consume_hunk_line(current, hunk, line):
                continue
            hunk = None

        if line.startswith("diff --git "):
            old_path, new_path = _paths_from_git_header(line[len("diff --git "):])
            current = _FileBuilder(path=new_path, old_path=old_path)
            files.append(current)
            hunk = None
        elif line.startswith(("diff --cc ", "diff --combined ")):
            path = unquote_path(line.split(" ", 2)[2])
            current = _FileBuilder(path=path, old_path=None)
            files.append(current)
            hunk = None
        elif current is None or line.startswith("\\"):
            continue
        elif line.startswith("@@"):
            current.in_body = True
            hunk = _start_hunk(line)
            if hunk is not None:
                current.hunks.append(hunk)
        elif not current.in_body:
            _apply_header_line(current, line)

    built = tuple(builder.build() for builder in files)
    stats = DiffStats(
        files_changed=len(built),
        additions=sum(diff_file.additions for diff_file in built),
        deletions=sum(diff_file.deletions for diff_file in built),
    )
    return ParsedDiff(files=built, stats=stats)


def parse_numstat(output: str) -> DiffStats:
    """
    Parses ``git diff --numstat`` output (``added<TAB>deleted<TAB>path`` per
    file). Binary files report ``-`` for both counts and add no lines.
    """
    files_changed = additions = deletions = 0
    for line in output.splitlines():
        fields = line.split("\t", 2)
        if len(fields) != 3:
            continue
        files_changed += 1
        if fields[0].isdigit():
            additions += int(fields[0])
        if fields[1].isdigit():
            deletions += int(fields[1])
    return DiffStats(files_changed=files_changed, additions=additions, deletions=deletions)


@collector_registry.register("diff")
class DiffCollector(Collector):
    """
    A collector that retrieves and parses the working tree (or staged) diff.
    """

    def __init__(self, executor: GitExecutor, options: GitContextOptions):
        self._executor = executor
        self._context = DEFAULT_DIFF_CONTEXT if options.diff_context is None else options.diff_context
        self._staged = options.staged_diff
        self._revision = validate_commit_hash(options.diff_revision) if options.diff_revision else None
        self._paths = options.paths

    async def collect(self) -> Mapping[str, Any]:
        args = [
            "diff",
            "--no-color",
            "--no-ext-diff",
            "--no-textconv",
            "--find-renames",
            f"--unified={self._context}",
        ]
        if self._staged:
            args.append("--cached")
        if self._revision:
            args.append(self._revision)

        result = await self._executor.run(args, paths=self._paths)
        return {"diff": parse_diff(result.stdout)}
