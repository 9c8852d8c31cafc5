"""Tests for settings."""

from linkgraph.config import Settings, get_dev_settings


class TestSettings:
    """Test Settings loading."""

    def test_defaults(self):
        """Test provider and layout defaults."""
        settings = Settings(_env_file=None)
        assert settings.llm_provider == "gemini"
        assert settings.query_max_nodes == 1500
        assert settings.history_max_entries == 100

    def test_env_prefix(self, monkeypatch):
        """Test LINKGRAPH_ environment variables override defaults."""
        monkeypatch.setenv("LINKGRAPH_LLM_PROVIDER", "openai")
        monkeypatch.setenv("LINKGRAPH_QUERY_MAX_NODES", "200")
        settings = Settings(_env_file=None)
        assert settings.llm_provider == "openai"
        assert settings.query_max_nodes == 200

    def test_test_settings(self, test_settings):
        """Test the test profile disables tick pacing."""
        assert test_settings.llm_api_key == "test-key"
        assert test_settings.simulation_tick_interval == 0.0

    def test_dev_settings(self):
        """Test the dev profile logs verbosely."""
        assert get_dev_settings().log_level == "DEBUG"
