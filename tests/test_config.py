"""Tests for Counsel configuration loading."""

from pathlib import Path

import pytest
import yaml

from counsel.config import GatewayConfig, ProviderConfig, load_config
from counsel.errors import ConfigError
from counsel.llm.providers import create_provider
from counsel.prompts import (
    CHAT_SYSTEM_PROMPT,
    DECISION_SYSTEM_PROMPT,
    OUTCOME_MARKER,
    select_system_prompt,
)


class TestProviderConfig:
    def test_defaults(self):
        p = ProviderConfig()
        assert p.provider == "anthropic"
        assert p.endpoint == "https://api.anthropic.com/v1/messages"
        assert p.max_retries == 2

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValueError):
            ProviderConfig(provider="openai")


class TestLoadConfig:
    def test_explicit_file(self, tmp_path: Path):
        path = tmp_path / "counsel.yaml"
        path.write_text(yaml.safe_dump({
            "provider": {"provider": "ollama", "ollama_model": "qwen3:8b"},
            "max_iterations": 5,
        }))
        cfg = load_config(path)
        assert cfg.provider.provider == "ollama"
        assert cfg.provider.ollama_model == "qwen3:8b"
        assert cfg.max_iterations == 5

    def test_ollama_only_config_uses_ollama_model(self, tmp_path: Path):
        path = tmp_path / "counsel.yaml"
        path.write_text("provider:\n  provider: ollama\n")
        provider = create_provider(load_config(path).provider)
        req = provider.build_request("SYSTEM", [], [{"role": "user", "content": "hi"}])
        assert req.body["model"] == "llama3.1:8b"
        assert req.url == "http://localhost:11434/api/chat"

    def test_missing_explicit_file_uses_defaults(self, tmp_path: Path):
        cfg = load_config(tmp_path / "nope.yaml")
        assert cfg == GatewayConfig()

    def test_search_path(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "counsel.yaml").write_text("max_iterations: 7\n")
        assert load_config().max_iterations == 7

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "counsel.yaml"
        path.write_text("")
        assert load_config(path) == GatewayConfig()

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "counsel.yaml"
        path.write_text("provider: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_root(self, tmp_path: Path):
        path = tmp_path / "counsel.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_validation_error(self, tmp_path: Path):
        path = tmp_path / "counsel.yaml"
        path.write_text("max_iterations: 0\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path)


class TestPrompts:
    def test_select_by_kind(self):
        assert select_system_prompt("chat") == CHAT_SYSTEM_PROMPT
        assert select_system_prompt("decision") == DECISION_SYSTEM_PROMPT
        assert "update_decision_summary" in DECISION_SYSTEM_PROMPT

    def test_decision_prompt_explains_outcome_marker(self):
        assert OUTCOME_MARKER in DECISION_SYSTEM_PROMPT
        assert OUTCOME_MARKER not in CHAT_SYSTEM_PROMPT
