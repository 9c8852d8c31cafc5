"""Configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LINKGRAPH_",
        case_sensitive=False,
    )

    # LLM Configuration
    llm_provider: str = Field(
        default="gemini",
        description="LLM provider: 'gemini' or 'openai'"
    )
    llm_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"
    llm_timeout: float = 60.0
    llm_max_concurrent: int = 4

    # Query prompt bounds
    query_max_nodes: int = Field(
        default=1500,
        description="Max connection descriptor lines sent to the LLM per query"
    )
    profile_field_max_chars: int = Field(
        default=1200,
        description="Truncate each owner profile field to this many characters"
    )

    # History persistence
    history_path: str = ".linkgraph/history.json"
    history_max_entries: int = Field(
        default=100,
        description="Oldest history entries are dropped beyond this count"
    )

    # Viewport defaults (CLI)
    viewport_width: float = 1280.0
    viewport_height: float = 800.0

    # Simulation scheduling
    simulation_tick_interval: float = Field(
        default=1 / 60,
        description="Seconds between scheduled simulation steps"
    )
    simulation_max_ticks: int = Field(
        default=600,
        description="Upper bound on ticks when relaxing synchronously"
    )

    log_level: str = "INFO"


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(
        log_level="DEBUG",
        history_path=".linkgraph/dev_history.json",
    )


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        llm_api_key="test-key",
        history_path=".linkgraph/test_history.json",
        simulation_tick_interval=0.0,
        simulation_max_ticks=300,
    )


# Global settings instance
settings = Settings()
