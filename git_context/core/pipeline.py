import asyncio
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from git_context.config.logic import load_settings
from git_context.config.models import Settings
from git_context.core.collectors.status_collector import changed_files_from_status
from git_context.core.contracts.collector import Collector
from git_context.core.contracts.models import GitContext, GitContextOptions
from git_context.core.executor import GitExecutor, sanitize_error
from git_context.core.registry import collector_registry
from git_context.core.sanitizer import sanitize_for_ai
from git_context.core.validators import validate_branch_name, validate_commit_hash, validate_file_path
from git_context.utils.errors import ValidationError
from git_context.utils.logger import logger

# Collectors run for every snapshot, in the order their sections are assembled.
SECTIONS = ("repository", "branch", "status", "log", "diff")

OptionsLike = Union[GitContextOptions, Mapping[str, Any], None]


def _coerce_options(options: OptionsLike) -> GitContextOptions:
    if options is None:
        return GitContextOptions()
    if isinstance(options, GitContextOptions):
        return options
    try:
        return GitContextOptions(**options)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "options"
        raise ValidationError(f"option_{field}", error.get("input"), f"Invalid option '{field}': {error['msg']}") from None


def resolve_options(options: OptionsLike, settings: Settings) -> GitContextOptions:
    """
    Validates per-call options and fills unset fields from ``settings.context``.

    Raises:
        ValidationError: If any option, path, branch or revision is rejected.
    """
    options = _coerce_options(options)

    for path in options.paths:
        validate_file_path(path)
    if options.log_branch is not None:
        validate_branch_name(options.log_branch)
    if options.diff_revision is not None:
        validate_commit_hash(options.diff_revision)
    if options.cwd is not None and not options.cwd.is_dir():
        raise ValidationError(
            "cwd_not_directory", sanitize_error(str(options.cwd)), "Working directory does not exist"
        )

    defaults = settings.context
    return options.model_copy(update={
        "max_commits": defaults.max_commits if options.max_commits is None else options.max_commits,
        "diff_context": defaults.diff_context if options.diff_context is None else options.diff_context,
        "sanitize_for_ai": defaults.sanitize_for_ai if options.sanitize_for_ai is None else options.sanitize_for_ai,
        "include_untracked": (
            defaults.include_untracked if options.include_untracked is None else options.include_untracked
        ),
    })


class GitContextBuilder:
    """
    Builds a :class:`GitContext` snapshot.
    It runs the section collectors concurrently, assembles their results and
    optionally sanitizes the snapshot for AI consumption.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initializes the builder with the given settings.

        Args:
            settings: The settings object. Loaded from the config files if omitted.
        """
        self.settings = settings or load_settings()

    async def build(self, options: OptionsLike = None) -> GitContext:
        """
        Collects a fresh snapshot of the repository.

        Args:
            options: Per-call options, as a model or a plain mapping.

        Returns:
            The assembled (and, unless disabled, sanitized) context.

        Raises:
            GitContextError: Any failure of any collector fails the whole call.
        """
        resolved = resolve_options(options, self.settings)
        executor = GitExecutor(self.settings.executor, cwd=resolved.cwd)
        logger.info("Collecting git context...")

        sections = await self._collect_sections(executor, resolved)
        status = sections["status"]
        context = GitContext(
            repository=sections["repository"],
            branch=sections["branch"],
            status=status,
            recent_commits=sections["recent_commits"],
            diff=sections["diff"],
            changed_files=changed_files_from_status(status),
        )

        if resolved.sanitize_for_ai:
            logger.debug("Applying AI sanitization to the git context")
            context = sanitize_for_ai(context)
        logger.info(
            f"Collected git context: {len(context.changed_files)} changed files, "
            f"{len(context.recent_commits)} commits"
        )
        return context

    async def _collect_sections(self, executor: GitExecutor, options: GitContextOptions) -> Dict[str, Any]:
        """
        Runs every collector and merges their sections.
        The first failure cancels the remaining collectors before it propagates.
        """
        collectors: List[Collector] = collector_registry.create_all(SECTIONS, executor=executor, options=options)
        tasks = [asyncio.ensure_future(collector.collect()) for collector in collectors]
        try:
            results: List[Mapping[str, Any]] = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Wait for the cancelled collectors to reap their git processes.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        combined: Dict[str, Any] = {}
        for data in results:
            combined.update(data)
        return combined


async def get_git_context_async(options: OptionsLike = None, *, settings: Optional[Settings] = None) -> GitContext:
    """
    Returns a fresh, structured snapshot of the repository at ``options.cwd``
    (the current directory by default).

    Example:
        >>> context = await get_git_context_async({"max_commits": 5, "cwd": "/path/to/repo"})
        >>> context.branch.kind
        'tracking'
    """
    return await GitContextBuilder(settings).build(options)


def get_git_context(options: OptionsLike = None, *, settings: Optional[Settings] = None) -> GitContext:
    """
    Synchronous variant of :func:`get_git_context_async`.

    Must not be called from inside a running event loop.
    """
    return asyncio.run(get_git_context_async(options, settings=settings))
