from typing import Any, Mapping

from git_context.core.contracts.collector import Collector
from git_context.core.contracts.models import GitContextOptions, RepositoryInfo
from git_context.core.executor import GitExecutor
from git_context.core.redaction import redact_credentials
from git_context.core.registry import collector_registry


def has_worktree_changes(porcelain_v2: str) -> bool:
    """True if ``git status --porcelain=v2 -z`` output lists any change entry."""
    for entry in porcelain_v2.split("\0"):
        entry = entry.strip("\n")
        if entry and not entry.startswith(("#", "!")):
            return True
    return False


def parse_repository(root_output: str, remote_output: str, status_output: str) -> RepositoryInfo:
    """
    Builds repository info from raw git output.

    Credentials embedded in the remote URL are always redacted here, whatever
    the caller's sanitization setting.
    """
    remote = remote_output.strip() or None
    return RepositoryInfo(
        root=root_output.strip(),
        remote_url=redact_credentials(remote) if remote else None,
        is_clean=not has_worktree_changes(status_output),
    )


@collector_registry.register("repository")
class RepositoryCollector(Collector):
    """
    A collector that retrieves the repository root, origin URL and clean flag.
    """

    def __init__(self, executor: GitExecutor, options: GitContextOptions):
        self._executor = executor
        self._options = options

    async def collect(self) -> Mapping[str, Any]:
        root = await self._executor.run(["rev-parse", "--show-toplevel"])
        # Exit code 1 means the key is unset: no origin remote.
        remote = await self._executor.run(["config", "--get", "remote.origin.url"], ok_returncodes=(0, 1))
        status = await self._executor.run(["status", "--porcelain=v2", "-z"])
        return {"repository": parse_repository(root.stdout, remote.stdout, status.stdout)}
