"""
Unit tests for environment-based settings.
"""

from admission_webhook.settings import Settings


class TestSettings:
    """Test cases for settings loaded from the environment."""

    def test_defaults(self, monkeypatch):
        for var in ("BASE_PATH", "WEBHOOK_PORT", "POD_NODES_SELECTOR_CONFIG", "MAX_REQUEST_BYTES"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.base_path == "/mutate"
        assert settings.webhook_port == 8443
        assert settings.tls_enabled is True
        assert settings.pod_nodes_selector_config == ""
        assert settings.max_request_bytes == 8 * 1024 * 1024

    def test_base_path_override(self, monkeypatch):
        monkeypatch.setenv("BASE_PATH", "/admission/pods")

        assert Settings(_env_file=None).base_path == "/admission/pods"

    def test_base_path_gets_leading_slash(self, monkeypatch):
        monkeypatch.setenv("BASE_PATH", "custom-mutate")

        assert Settings(_env_file=None).base_path == "/custom-mutate"

    def test_blank_base_path_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("BASE_PATH", "  ")

        assert Settings(_env_file=None).base_path == "/mutate"

    def test_typed_overrides(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_PORT", "9443")
        monkeypatch.setenv("TLS_ENABLED", "false")
        monkeypatch.setenv("MAX_REQUEST_BYTES", "16777216")
        monkeypatch.setenv("POD_NODES_SELECTOR_CONFIG", "team-a:pool=a")

        settings = Settings(_env_file=None)

        assert settings.webhook_port == 9443
        assert settings.tls_enabled is False
        assert settings.pod_nodes_selector_config == "team-a:pool=a"
        assert settings.max_request_bytes == 16 * 1024 * 1024
