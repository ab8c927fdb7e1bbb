import pytest

from shikai.config import AppConfig, ConfigError, resolve_model_alias
from shikai.prompts import build_system_prompt, clean_title
from shikai.runtime.router import InputRouter


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ["AGENT_NAME", "SHIKAI_MODEL", "MAX_STEPS", "TITLE_UPDATE_INTERVAL", "SHIKAI_LOG_DIR"]:
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env()

        assert config.agent.name == "Assistant"
        assert config.agent.max_steps == 5
        assert config.conversation.title_update_interval == 5
        assert config.conversation.log_dir == "conversation-logs"
        assert config.conversation.catalog_limit == 10

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AGENT_NAME", "Shikai")
        monkeypatch.setenv("SHIKAI_MODEL", "4o")
        monkeypatch.setenv("MAX_STEPS", "8")
        monkeypatch.setenv("TITLE_UPDATE_INTERVAL", "3")
        monkeypatch.setenv("SHIKAI_LOG_DIR", "/tmp/chats")

        config = AppConfig.from_env()

        assert config.agent.name == "Shikai"
        assert config.agent.model == "gpt-4o"
        assert config.agent.max_steps == 8
        assert config.conversation.title_update_interval == 3
        assert config.conversation.log_dir == "/tmp/chats"

    def test_bad_integer_falls_back(self, monkeypatch):
        monkeypatch.setenv("MAX_STEPS", "many")

        assert AppConfig.from_env().agent.max_steps == 5

    def test_validate_rejects_zero_interval(self):
        config = AppConfig()
        config.conversation.title_update_interval = 0

        with pytest.raises(ConfigError):
            config.validate()

    def test_validate_rejects_zero_steps(self):
        config = AppConfig()
        config.agent.max_steps = 0

        with pytest.raises(ConfigError):
            config.validate()


def test_resolve_model_alias():
    assert resolve_model_alias("Sonnet") == "claude-sonnet-4-20250514"
    assert resolve_model_alias("ollama/llama3") == "ollama/llama3"


class TestCleanTitle:
    def test_strips_quotes_and_prefix(self):
        assert clean_title('"Updated title: React state bugs"') == "React State Bugs"

    def test_limits_words_and_length(self):
        assert clean_title("one two three four five six seven eight") == "One Two Three Four Five Six"
        assert len(clean_title("supercalifragilistic " * 6)) <= 50

    def test_fallback_for_empty(self):
        assert clean_title("  ?!  ") == "New Chat Session"


def test_system_prompt_mentions_agent():
    assert "I'm Shikai" in build_system_prompt("Shikai")


class TestInputRouter:
    class Builtins:
        def has_command(self, name):
            return name in ("save", "history", "exit", "help")

    def test_builtins_are_case_insensitive(self):
        router = InputRouter(self.Builtins())

        assert router.route("SAVE").kind == "builtin"
        assert router.route("/history").name == "history"

    def test_sentences_go_to_the_model(self):
        router = InputRouter(self.Builtins())

        result = router.route("save my work to disk")
        assert result.kind == "prompt"
        assert result.args == "save my work to disk"

    def test_unknown_slash_command(self):
        result = InputRouter(self.Builtins()).route("/frobnicate")

        assert result.kind == "unknown"
        assert result.name == "frobnicate"
