"""Process-wide configuration, resolved before the agent loop starts."""

import os
from dataclasses import dataclass
from typing import Literal, get_args

from dotenv import load_dotenv

from minicursor.clients.anthropic import AnthropicClient, AnthropicConfig
from minicursor.clients.base import ModelClient
from minicursor.clients.langchain import LangChainClient
from minicursor.services.agent import DEFAULT_MAX_ITERATIONS

Provider = Literal["anthropic", "langchain", "openai"]

# Environment variable holding the key and base URL for each provider
_CREDENTIAL_VARS: dict[str, tuple[str, str]] = {
    "anthropic": ("ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL"),
    "langchain": ("ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL"),
    "openai": ("OPENAI_API_KEY", "OPENAI_BASE_URL"),
}


@dataclass
class AgentConfig:
    """Configuration for one agent run."""

    api_key: str | None = None
    base_url: str | None = None
    model: str = "claude-3-5-sonnet-20241022"
    provider: Provider = "anthropic"
    temperature: float = 0.0
    max_tokens: int = 4096
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    tokens_per_minute: int = 40_000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "AgentConfig":
        """Read configuration from the environment (and a .env file if present)."""
        if dotenv:
            load_dotenv()

        provider = os.getenv("MODEL_PROVIDER", "anthropic").lower()
        if provider not in get_args(Provider):
            raise ValueError(f"MODEL_PROVIDER must be one of {', '.join(get_args(Provider))}, got '{provider}'")

        key_var, base_url_var = _CREDENTIAL_VARS[provider]
        return cls(
            api_key=os.getenv(key_var),
            base_url=os.getenv(base_url_var) or None,
            model=os.getenv("MODEL_NAME", cls.model),
            provider=provider,
            temperature=float(os.getenv("TEMPERATURE", cls.temperature)),
            max_tokens=int(os.getenv("MAX_TOKENS", cls.max_tokens)),
            max_iterations=int(os.getenv("MAX_ITERATIONS", cls.max_iterations)),
            tokens_per_minute=int(os.getenv("TOKENS_PER_MINUTE", cls.tokens_per_minute)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
        )


def build_client(config: AgentConfig) -> ModelClient:
    """Construct the model client selected by the configuration."""
    if not config.api_key:
        key_var, _ = _CREDENTIAL_VARS[config.provider]
        raise ValueError(f"{key_var} environment variable is required")

    if config.provider == "openai":
        return LangChainClient.openai(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    if config.provider == "langchain":
        return LangChainClient.anthropic(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    return AnthropicClient(
        api_key=config.api_key,
        config=AnthropicConfig(
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            base_url=config.base_url,
            tokens_per_minute=config.tokens_per_minute,
        ),
    )
