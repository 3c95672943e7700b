import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_ALLOWED_DOMAINS = [
    "registry.npmjs.org",
    "api.anthropic.com",
    "github.com",
    "pypi.org",
    "files.pythonhosted.org",
    "sentry.io",
    "statsig.anthropic.com",
    "statsig.com",
]


class ClaudeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    config_path: str = "~/.claude"
    auth_path: str = ""
    default_mode: str = "yolo"


class ResourcesConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    memory: str = "4g"
    cpus: str = "2"

    @field_validator("memory", "cpus", mode="before")
    @classmethod
    def coerce_numbers(cls, v: object) -> object:
        # Hand-written YAML often has `cpus: 2` or `memory: 512`.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("memory")
    @classmethod
    def validate_memory(cls, v: str) -> str:
        if not re.match(r"^\d+[bkmg]?$", v.strip().lower()):
            raise ValueError(f"Invalid memory limit: {v}. Expected e.g. '512m', '4g'")
        return v.strip().lower()

    @field_validator("cpus")
    @classmethod
    def validate_cpus(cls, v: str) -> str:
        try:
            value = float(v)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid CPU limit: {v}") from None
        if value <= 0:
            raise ValueError(f"CPU limit must be positive, got: {v}")
        return str(v).strip()


class ContainersConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    prefix: str = "maestro-"
    image: str = "ghcr.io/uprockcom/maestro:latest"
    resources: ResourcesConfig = Field(default_factory=ResourcesConfig)


class FirewallConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    allowed_domains: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_DOMAINS))
    internal_dns: str = ""
    internal_domains: List[str] = []


class TokenRefreshConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = True
    threshold: str = "6h"


class NotificationsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = True
    attention_threshold: str = "5m"


class DaemonConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    check_interval: str = "30m"
    show_nag: bool = True
    token_refresh: TokenRefreshConfig = Field(default_factory=TokenRefreshConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)


class BedrockConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = False
    model: str = ""


class WizardConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    always_run: bool = False
    resume_after_auth: bool = False


class CliConfig(BaseModel):
    """External commands the TUI hands off to after it exits."""

    model_config = ConfigDict(extra="allow")
    binary: str = "maestro"
    tmux_session: str = "main"


class MaestroConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)
    containers: ContainersConfig = Field(default_factory=ContainersConfig)
    firewall: FirewallConfig = Field(default_factory=FirewallConfig)
    daemon: DaemonConfig = Field(default_factory=DaemonConfig)
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)
    cli: CliConfig = Field(default_factory=CliConfig)
