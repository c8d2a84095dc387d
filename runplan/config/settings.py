from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HF_MODEL = "mistralai/Mistral-Small-3.1-24B-Instruct-2503:featherless-ai"


class Settings(BaseSettings):
    hf_api_key: str = Field(default="", validation_alias="HF_API_KEY")
    hf_model: str = Field(default=DEFAULT_HF_MODEL, validation_alias="HF_MODEL")
    hf_max_tokens: int = Field(default=900, ge=200, le=4000, validation_alias="HF_MAX_TOKENS")
    hf_router_url: str = Field(
        default="https://router.huggingface.co/v1/chat/completions",
        validation_alias="HF_ROUTER_URL",
    )
    hf_completions_base_url: str = Field(
        default="https://router.huggingface.co",
        validation_alias="HF_COMPLETIONS_BASE_URL",
        description="Base URL for provider-scoped completion routes (<base>/<provider>/v1/completions)",
    )
    hf_timeout_seconds: float = Field(default=120.0, gt=0, validation_alias="HF_TIMEOUT_SECONDS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_rotation: str = Field(default="10 MB", validation_alias="LOG_ROTATION")
    log_retention: str = Field(default="7 days", validation_alias="LOG_RETENTION")
    plan_language: str = Field(
        default="English",
        validation_alias="PLAN_LANGUAGE",
        description="Language requested for every user-facing string of generated plans",
    )
    volume_tolerance_km: float = Field(
        default=0.4,
        ge=0.0,
        validation_alias="VOLUME_TOLERANCE_KM",
        description="Accepted gap between a week's realised volume and its periodized target",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("hf_api_key")
    @classmethod
    def validate_api_key(cls, value: str) -> str:
        """Warn when the text-generation credential is missing.

        Plan generation raises ConfigurationError at call time; settings
        themselves still load so that offline normalization keeps working.
        """
        if not value:
            logger.warning("HF_API_KEY is not set. Plan generation and session adaptation will fail until it is provided.")
        return value.strip()

    @property
    def training_plan_max_tokens(self) -> int:
        """Token ceiling for plan-sized generations (at least 2600, at most 4000)."""
        return min(max(self.hf_max_tokens, 2600), 4000)


settings = Settings()
