import re
from typing import Any, Dict, Mapping

from git_context.core.contracts.collector import Collector
from git_context.core.contracts.models import (
    BranchInfo,
    DetachedHead,
    GitContextOptions,
    LocalBranch,
    TrackingBranch,
)
from git_context.core.executor import GitExecutor
from git_context.core.registry import collector_registry

HEADER_PREFIX = "# branch."
AHEAD_BEHIND = re.compile(r"^\+(\d+) -(\d+)$")
INITIAL_OID = "(initial)"
DETACHED_HEAD = "(detached)"


def _read_headers(output: str) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for line in re.split(r"[\0\n]", output):
        if line.startswith(HEADER_PREFIX):
            key, _, value = line[len(HEADER_PREFIX):].partition(" ")
            headers[key] = value.strip()
    return headers


def parse_branch_header(output: str) -> BranchInfo:
    """
    Parses the ``# branch.*`` headers of ``git status --porcelain=v2 --branch``.

    - ``branch.head (detached)`` gives :class:`DetachedHead`.
    - ``branch.upstream`` gives :class:`TrackingBranch`; a missing ``branch.ab``
      line (upstream gone) counts as zero ahead and behind.
    - anything else is a :class:`LocalBranch`, ``unborn`` before the first commit.
    """
    headers = _read_headers(output)
    oid = headers.get("oid", "")
    head = headers.get("head")

    if not head or head == DETACHED_HEAD:
        return DetachedHead(commit_hash="" if oid == INITIAL_OID else oid)

    upstream = headers.get("upstream")
    if upstream:
        ahead = behind = 0
        match = AHEAD_BEHIND.match(headers.get("ab", ""))
        if match:
            ahead, behind = int(match.group(1)), int(match.group(2))
        return TrackingBranch(current=head, upstream=upstream, ahead=ahead, behind=behind)

    return LocalBranch(current=head, unborn=oid == INITIAL_OID)


@collector_registry.register("branch")
class BranchCollector(Collector):
    """
    A collector that reports the current branch, its upstream and divergence.
    """

    def __init__(self, executor: GitExecutor, options: GitContextOptions):
        self._executor = executor
        self._options = options

    async def collect(self) -> Mapping[str, Any]:
        result = await self._executor.run(
            ["status", "--porcelain=v2", "--branch", "-z", "--untracked-files=no"]
        )
        return {"branch": parse_branch_header(result.stdout)}
