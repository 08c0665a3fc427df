from git_context.config.logic import load_settings
from git_context.config.models import ContextConfig, ExecutorConfig, Settings

__all__ = ["ContextConfig", "ExecutorConfig", "Settings", "load_settings"]
