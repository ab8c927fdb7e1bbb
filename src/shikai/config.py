import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


MODEL_ALIASES = {
    "sonnet": "claude-sonnet-4-20250514",
    "opus": "claude-opus-4-20250514",
    "haiku": "claude-3-5-haiku-20241022",
    "4o": "gpt-4o",
    "4": "gpt-4-turbo",
    "flash": "gemini/gemini-2.5-flash",
    "deepseek": "deepseek/deepseek-chat",
}


class ConfigError(Exception):
    pass


def resolve_model_alias(name: str) -> str:
    return MODEL_ALIASES.get(name.lower(), name)


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name) or default


def get_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}")
        return default


@dataclass
class AgentConfig:
    name: str = "Assistant"
    model: str = "claude-sonnet-4-20250514"
    max_steps: int = 5
    temperature: float = 0.0
    max_tokens: int = 4096
    stream: bool = True
    auto_approve: bool = False


@dataclass
class ConversationConfig:
    log_dir: str = "conversation-logs"
    title_update_interval: int = 5
    catalog_limit: int = 10
    prompt_caching: bool = True


@dataclass
class AppConfig:
    agent: AgentConfig = field(default_factory=AgentConfig)
    conversation: ConversationConfig = field(default_factory=ConversationConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        agent_defaults = AgentConfig()
        conversation_defaults = ConversationConfig()
        return cls(
            agent=AgentConfig(
                name=get_optional_env("AGENT_NAME", agent_defaults.name),
                model=resolve_model_alias(get_optional_env("SHIKAI_MODEL", agent_defaults.model)),
                max_steps=get_int_env("MAX_STEPS", agent_defaults.max_steps),
            ),
            conversation=ConversationConfig(
                log_dir=get_optional_env("SHIKAI_LOG_DIR", conversation_defaults.log_dir),
                title_update_interval=get_int_env(
                    "TITLE_UPDATE_INTERVAL", conversation_defaults.title_update_interval
                ),
            ),
        )

    def validate(self) -> None:
        if self.agent.max_steps < 1:
            raise ConfigError(f"max_steps must be at least 1, got {self.agent.max_steps}")
        if self.conversation.title_update_interval < 1:
            raise ConfigError(
                "title_update_interval must be at least 1, "
                f"got {self.conversation.title_update_interval}"
            )
        if self.conversation.catalog_limit < 1:
            raise ConfigError(
                f"catalog_limit must be at least 1, got {self.conversation.catalog_limit}"
            )
