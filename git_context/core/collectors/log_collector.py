import re
from datetime import datetime
from typing import Any, List, Mapping, Tuple

from git_context.core.contracts.collector import Collector
from git_context.core.contracts.models import Commit, GitContextOptions
from git_context.core.executor import GitExecutor
from git_context.core.registry import collector_registry
from git_context.utils.logger import logger

DEFAULT_MAX_COMMITS = 10
FIELD_SEPARATOR = "\x1f"
# hash, short hash, author date (strict ISO 8601), email, name, raw message.
# The free-text message goes last so separators inside it cannot shift fields.
LOG_FORMAT = "%H%x1f%h%x1f%aI%x1f%ae%x1f%an%x1f%B"
FULL_HASH = re.compile(r"^[0-9a-f]{40}(?:[0-9a-f]{24})?$")


def split_message(message: str) -> Tuple[str, str]:
    """Splits a raw commit message into its subject line and body."""
    subject, _, body = message.partition("\n")
    return subject.strip(), body.strip("\n")


def parse_log(output: str) -> Tuple[Commit, ...]:
    """
    Parses ``git log -z --pretty=format:<LOG_FORMAT>`` output, newest first.

    Messages are kept raw; sanitization is a separate step. Records with an
    invalid hash or date are skipped.
    """
    commits: List[Commit] = []
    for record in output.split("\0"):
        record = record.lstrip("\n")
        if not record.strip():
            continue

        fields = record.split(FIELD_SEPARATOR, 5)
        if len(fields) != 6 or not FULL_HASH.match(fields[0]):
            logger.warning("Skipping malformed commit record in git log output")
            continue
        commit_hash, short_hash, date_str, email, author, message = fields

        try:
            date = datetime.fromisoformat(date_str)
        except ValueError:
            logger.warning(f"Skipping commit {short_hash} with unparseable date")
            continue

        message = message.rstrip()
        subject, body = split_message(message)
        commits.append(Commit(
            hash=commit_hash,
            short_hash=short_hash,
            author=author,
            email=email,
            date=date,
            message=message,
            subject=subject,
            body=body,
        ))
    return tuple(commits)


@collector_registry.register("log")
class LogCollector(Collector):
    """
    A collector that retrieves the most recent commits with their metadata.
    """

    def __init__(self, executor: GitExecutor, options: GitContextOptions):
        """
        Args:
            executor: The executor bound to the repository.
            options: Resolved call options; ``max_commits``, ``log_branch`` and
                ``paths`` are used.
        """
        self._executor = executor
        self._max_commits = options.max_commits or DEFAULT_MAX_COMMITS
        self._revision = options.log_branch or "HEAD"
        self._paths = options.paths

    async def collect(self) -> Mapping[str, Any]:
        # A repository without commits (or a missing branch) has no history;
        # that is an empty section, not an error.
        head = await self._executor.run(
            ["rev-parse", "--verify", "--quiet", self._revision], ok_returncodes=(0, 1)
        )
        if head.returncode != 0:
            logger.debug(f"No commits reachable from {self._revision}")
            return {"recent_commits": ()}

        result = await self._executor.run(
            [
                "log",
                "-z",
                "--no-color",
                f"--max-count={self._max_commits}",
                f"--pretty=format:{LOG_FORMAT}",
                self._revision,
            ],
            paths=self._paths,
        )
        return {"recent_commits": parse_log(result.stdout)}
