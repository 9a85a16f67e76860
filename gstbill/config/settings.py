from decimal import Decimal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env",),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gstbill", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/gstbill",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )

    # GST engine
    GST_BASE_STATE_CODE: str = Field(
        default="24",
        validation_alias=AliasChoices("GST_BASE_STATE_CODE", "gst_base_state_code"),
    )
    GST_B2CL_THRESHOLD: Decimal = Field(
        default=Decimal("250000"),
        validation_alias=AliasChoices("GST_B2CL_THRESHOLD", "gst_b2cl_threshold"),
    )
    GST_RATE_SLABS: list[Decimal] = Field(
        default_factory=lambda: [Decimal(r) for r in ("0", "0.25", "3", "5", "12", "18", "28")],
        validation_alias=AliasChoices("GST_RATE_SLABS", "gst_rate_slabs"),
    )
    GST_NUMBERING_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        validation_alias=AliasChoices("GST_NUMBERING_MAX_ATTEMPTS", "gst_numbering_max_attempts"),
    )


settings = Settings()
