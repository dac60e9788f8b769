"""
LoongClaw Configuration

Loads settings from environment variables and a .env file. Every field
has a default so the agent starts with no configuration at all; the
LLM provider needs an API key before any conversation can happen.

Usage:
    from loongclaw.config import load_settings

    settings = load_settings()
    print(settings.workspace_dir, settings.allowed_paths)
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from loongclaw.exceptions import ConfigurationError

PROVIDER_DEFAULTS: dict[str, dict[str, object]] = {
    "deepseek": {
        "key_env": "DEEPSEEK_API_KEY",
        "url_env": "DEEPSEEK_API_URL",
        "model_env": "DEEPSEEK_MODEL",
        "url": "https://api.deepseek.com/v1",
        "models": ["deepseek-chat"],
        "format": "openai",
    },
    "glm": {
        "key_env": "GLM_API_KEY",
        "url_env": "GLM_API_URL",
        "model_env": "GLM_MODEL",
        "url": "https://open.bigmodel.cn/api/anthropic",
        "models": ["glm-5", "glm-4.7"],
        "format": "anthropic",
    },
    "anthropic": {
        "key_env": "ANTHROPIC_API_KEY",
        "url_env": "ANTHROPIC_BASE_URL",
        "model_env": "ANTHROPIC_MODEL",
        "url": None,
        "models": ["claude-sonnet-4-20250514"],
        "format": "anthropic",
    },
    "openai": {
        "key_env": "OPENAI_API_KEY",
        "url_env": "OPENAI_BASE_URL",
        "model_env": "OPENAI_MODEL",
        "url": None,
        "models": ["gpt-4o"],
        "format": "openai",
    },
}


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime settings for the agent and its tool gatekeeper.

    Sandbox roots are derived once from allowed_paths and never change
    for the lifetime of the process.
    """

    model_config = ConfigDict(validate_default=True)

    # Tools
    workspace_dir: str = Field(default_factory=lambda: os.getenv("WORKSPACE_DIR", "./workspace"))
    allowed_paths: list[str] = Field(
        default_factory=lambda: _split_csv(os.getenv("ALLOWED_PATHS", ""))
    )
    approval_file: str = Field(
        default_factory=lambda: os.getenv("APPROVAL_FILE", "sessions/command-approvals.json")
    )
    shell_timeout_ms: int = Field(
        default_factory=lambda: os.getenv("SHELL_TIMEOUT", "30000"), gt=0
    )
    max_output_bytes: int = Field(
        default_factory=lambda: os.getenv("MAX_OUTPUT_BYTES", "65536"), ge=1024
    )

    # Logging / output
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    json_logs: bool = Field(default_factory=lambda: _env_bool("JSON_LOGS", False))
    show_tools: bool = Field(default_factory=lambda: _env_bool("SHOW_TOOLS", True))
    json_output: bool = Field(default_factory=lambda: _env_bool("JSON_OUTPUT", False))

    # LLM
    llm_provider: str = Field(default_factory=lambda: os.getenv("LLM_PROVIDER", "deepseek"))
    api_key: str = ""
    api_url: str | None = None
    models: list[str] = Field(default_factory=list)
    timeout_seconds: float = 60.0
    max_retries: int = Field(default=3, ge=1)

    # Session memory
    short_term_size: int = Field(
        default_factory=lambda: os.getenv("SHORT_TERM_SIZE", "10"), ge=1
    )
    session_id: str = "cli-default"

    @field_validator("llm_provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in PROVIDER_DEFAULTS:
            raise ValueError(
                f"unknown LLM provider '{value}' (expected one of {', '.join(PROVIDER_DEFAULTS)})"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    def model_post_init(self, __context: object) -> None:
        defaults = PROVIDER_DEFAULTS[self.llm_provider]
        if not self.allowed_paths:
            self.allowed_paths = [self.workspace_dir]
        if not self.api_key:
            self.api_key = os.getenv(str(defaults["key_env"]), "")
        if self.api_url is None:
            self.api_url = os.getenv(str(defaults["url_env"])) or defaults["url"]  # type: ignore[assignment]
        if not self.models:
            configured = os.getenv(str(defaults["model_env"]), "")
            self.models = _split_csv(configured) or list(defaults["models"])  # type: ignore[arg-type]

    @property
    def provider_format(self) -> str:
        """Wire format of the configured provider: "openai" or "anthropic"."""
        return str(PROVIDER_DEFAULTS[self.llm_provider]["format"])

    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace_dir).absolute()


def load_settings(env_file: str | None = None, **overrides: object) -> Settings:
    """Load settings from the environment and an optional .env file.

    Values already present in the environment win over the .env file.

    Raises:
        ConfigurationError: if a value fails validation.
    """
    dotenv_path = env_file or find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
