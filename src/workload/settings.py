# src/workload/settings.py
import logging
from typing import Any
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_WORKING_TIME_MILLIS = 20
DEFAULT_COLD_START_TIME_MILLIS = 200


class WorkloadSettings(BaseSettings):
    """
    Settings of the simulated workload, read from the Lambda environment.

    Invalid durations never fail the function: a non-numeric, empty or
    negative value falls back to the default and a warning is logged.
    """

    working_time_millis: int = Field(
        default=DEFAULT_WORKING_TIME_MILLIS,
        alias="WORKING_TIME_MILLIS",
        description="Simulated processing time of every invocation"
    )

    cold_start_time_millis: int = Field(
        default=DEFAULT_COLD_START_TIME_MILLIS,
        alias="COLD_START_TIME_MILLIS",
        description="Simulated one-time initialization of an execution environment"
    )

    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL"
    )

    @field_validator('working_time_millis', 'cold_start_time_millis', mode='before')
    @classmethod
    def fall_back_on_invalid_duration(cls, v: Any, info: ValidationInfo) -> Any:
        """Parse a duration in whole milliseconds, using the default when unparseable."""
        default = cls.model_fields[info.field_name].default
        try:
            millis = int(float(str(v).strip()))
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Invalid {info.field_name}={v!r}, using default {default}")
            return default
        if millis < 0:
            logger.warning(f"Negative {info.field_name}={v!r}, using default {default}")
            return default
        return millis

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        level = str(v or "INFO").strip().upper()
        if level not in logging.getLevelNamesMapping():
            return "INFO"
        return level

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> WorkloadSettings:
    """
    Get cached settings instance.
    The environment is read once per execution environment.
    """
    return WorkloadSettings()
