"""Configuration management for the column mapping service."""

from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load environment variables from .env file in ops folder
env_path = Path(__file__).parent.parent / "ops" / ".env"
load_dotenv(dotenv_path=env_path)


class OpenAIConfig(BaseSettings):
    """OpenAI API configuration."""

    api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    temperature: float = Field(default=0.3, alias="OPENAI_TEMPERATURE")
    max_tokens: Optional[int] = Field(default=200, alias="OPENAI_MAX_TOKENS")
    timeout: int = Field(default=30, alias="OPENAI_TIMEOUT")
    base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class AnthropicConfig(BaseSettings):
    """Anthropic API configuration."""

    api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    model: str = Field(default="claude-3-5-haiku-20241022", alias="ANTHROPIC_MODEL")
    temperature: float = Field(default=0.3, alias="ANTHROPIC_TEMPERATURE")
    max_tokens: Optional[int] = Field(default=200, alias="ANTHROPIC_MAX_TOKENS")
    timeout: int = Field(default=30, alias="ANTHROPIC_TIMEOUT")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class MLflowConfig(BaseSettings):
    """MLflow tracking configuration."""

    tracking_uri: Optional[str] = Field(
        default="sqlite:///mlflow.db", alias="MLFLOW_TRACKING_URI"
    )
    experiment_name: str = Field(default="column-mapper", alias="MLFLOW_EXPERIMENT_NAME")
    # Off by default: tracing every fallback call is only useful while tuning prompts
    enabled: bool = Field(default=False, alias="MLFLOW_ENABLED")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class ColumnMappingConfig(BaseSettings):
    """Column mapping engine configuration."""

    sample_size: int = Field(default=10, alias="COLUMN_MAPPING_SAMPLE_SIZE")
    fallback_enabled: bool = Field(default=True, alias="COLUMN_MAPPING_FALLBACK_ENABLED")
    fallback_timeout: float = Field(default=5.0, alias="COLUMN_MAPPING_FALLBACK_TIMEOUT")
    fallback_max_retries: int = Field(default=0, alias="COLUMN_MAPPING_FALLBACK_MAX_RETRIES")
    max_workers: int = Field(default=1, alias="COLUMN_MAPPING_MAX_WORKERS")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"


class AppConfig(BaseSettings):
    """Main application configuration."""

    # Application settings
    app_name: str = Field(default="column-mapper", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Workspace membership database
    database_path: Path = Field(
        default=Path("data/workspaces.db"), alias="DATABASE_PATH"
    )

    # Comma-separated list of emails that may access every workspace
    super_admin_emails: str = Field(default="", alias="SUPER_ADMIN_EMAILS")

    # Per-Agent LLM Selection
    column_mapping_llm: str = Field(default="openai", alias="COLUMN_MAPPING_LLM")

    # LLM Provider Settings
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)

    # MLflow configuration
    mlflow: MLflowConfig = Field(default_factory=MLflowConfig)

    # Column mapping engine
    column_mapping: ColumnMappingConfig = Field(default_factory=ColumnMappingConfig)

    # CORS configuration
    cors_origins: str = Field(default="", alias="CORS_ORIGINS")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"

    def __init__(self, **kwargs):
        """Initialize configuration with nested settings."""
        super().__init__(**kwargs)
        # Ensure database directory exists
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    def get_super_admin_emails(self) -> List[str]:
        """Return the configured super-admin emails, lowercased."""
        return [
            email.strip().lower()
            for email in self.super_admin_emails.split(",")
            if email.strip()
        ]

    def has_llm_credentials(self, provider: Optional[str] = None) -> bool:
        """Check whether an API key is configured for the given (or mapping) provider."""
        provider = (provider or self.column_mapping_llm).lower()
        if provider == "openai":
            return bool(self.openai.api_key)
        if provider == "anthropic":
            return bool(self.anthropic.api_key)
        return False


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config
