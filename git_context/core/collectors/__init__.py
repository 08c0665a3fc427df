# Importing the modules registers each section collector.
from git_context.core.collectors import (  # noqa: F401
    branch_collector,
    diff_collector,
    log_collector,
    repository_collector,
    status_collector,
)
