from pydantic import BaseModel, Field


class ExecutorConfig(BaseModel):
    git_binary: str = Field("git", description="Name or path of the git executable")
    timeout_sec: float = Field(10.0, gt=0, description="Wall-clock budget per git invocation")
    max_output_bytes: int = Field(10 * 1024 * 1024, gt=0, description="Ceiling for stdout/stderr of one invocation")


class ContextConfig(BaseModel):
    max_commits: int = Field(10, ge=1, description="Default number of recent commits")
    diff_context: int = Field(3, ge=0, description="Default unified diff context lines")
    include_untracked: bool = Field(True, description="Report untracked files in status")
    sanitize_for_ai: bool = Field(True, description="Apply AI sanitization by default")


class Settings(BaseModel):
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig, description="Subprocess limits")
    context: ContextConfig = Field(default_factory=ContextConfig, description="Defaults for get_git_context()")
