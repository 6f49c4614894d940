"""ProviderConfig 测试 -- 环境变量加载与非法值降级"""

import pytest
from agentgate.provider.config import ProviderConfig, load_provider_config

_ENV_VARS = [
    "OLLAMA_API_BASE_URL",
    "GOOGLE_AI_API_BASE_URL",
    "GOOGLE_AI_API_KEY",
    "ANTHROPIC_API_BASE_URL",
    "ANTHROPIC_API_KEY",
    "AGENTGATE_LLM_TIMEOUT_S",
    "AGENTGATE_AGENT_PROFILES_PATH",
    "AGENTGATE_USAGE_QUEUE_SIZE",
    "AGENTGATE_DEFAULT_PROFILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestLoadProviderConfig:
    def test_defaults(self):
        config = load_provider_config()
        assert config == ProviderConfig()
        assert config.ollama_base_url == "http://localhost:11434"
        assert config.timeout_s == 30
        assert config.agent_profiles_path is None
        assert config.default_profile is None
        assert config.google_api_key.get_secret_value() == ""

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_API_BASE_URL", "http://gpu-box:11434")
        monkeypatch.setenv("GOOGLE_AI_API_KEY", "g-secret")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "a-secret")
        monkeypatch.setenv("AGENTGATE_LLM_TIMEOUT_S", "12")
        monkeypatch.setenv("AGENTGATE_USAGE_QUEUE_SIZE", "50")
        monkeypatch.setenv("AGENTGATE_AGENT_PROFILES_PATH", "/etc/agentgate/profiles.json")
        monkeypatch.setenv("AGENTGATE_DEFAULT_PROFILE", "cloud-first")

        config = load_provider_config()

        assert config.ollama_base_url == "http://gpu-box:11434"
        assert config.google_api_key.get_secret_value() == "g-secret"
        assert config.anthropic_api_key.get_secret_value() == "a-secret"
        assert config.timeout_s == 12
        assert config.usage_queue_size == 50
        assert config.agent_profiles_path == "/etc/agentgate/profiles.json"
        assert config.default_profile == "cloud-first"

    def test_secret_not_in_repr(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "a-secret")
        assert "a-secret" not in repr(load_provider_config())

    def test_invalid_int_keeps_default(self, monkeypatch):
        monkeypatch.setenv("AGENTGATE_LLM_TIMEOUT_S", "fast")
        monkeypatch.setenv("AGENTGATE_USAGE_QUEUE_SIZE", "many")

        config = load_provider_config()

        assert config.timeout_s == 30
        assert config.usage_queue_size == 1000
