# src/autoscale_demo/settings.py
import logging
import os
from typing import Optional, Dict, Any
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

VALID_DEPLOYMENT_MODES = ["aws-mock", "aws-prod"]
MOCK_ENDPOINT_URL = "http://localhost:5000"


class Settings(BaseSettings):
    """
    Single source of truth for deployment and tooling settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from autoscale_demo.settings import get_settings
        settings = get_settings()
        stack_name = settings.stack_name
    """

    # Deployment Mode
    deployment_mode: str = Field(
        default="aws-prod",
        description="Deployment mode: aws-mock (moto/localstack endpoint) or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_profile: Optional[str] = Field(
        default=None,
        alias="AWS_PROFILE"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    aws_account_id: Optional[str] = Field(
        default=None,
        alias="CDK_DEFAULT_ACCOUNT",
        description="Target account of the stack (resolved by the CDK CLI if not provided)"
    )

    # Stack Configuration
    stack_name: str = Field(
        default="LambdaAutoscaleStack",
        description="CloudFormation stack name"
    )

    # Simulated workload profile of the deployed functions
    working_time_millis: int = Field(
        default=10,
        ge=0,
        description="WORKING_TIME_MILLIS passed to the deployed functions"
    )

    cold_start_time_millis: int = Field(
        default=500,
        ge=0,
        description="COLD_START_TIME_MILLIS passed to the deployed functions"
    )

    lambda_memory_size: int = Field(
        default=256,
        ge=128,
        le=10240,
        description="Memory of the deployed functions in MB"
    )

    # Provisioned concurrency scaling
    initial_capacity: int = Field(
        default=1,
        ge=0,
        description="Provisioned concurrency set on the alias at deploy time"
    )

    min_capacity: int = Field(
        default=1,
        ge=0
    )

    max_capacity: int = Field(
        default=50,
        ge=1
    )

    target_value: float = Field(
        default=0.8,
        gt=0,
        le=1,
        description="Target provisioned concurrency utilization"
    )

    # Dashboard
    dashboard_period_seconds: int = Field(
        default=30,
        ge=1
    )

    # Load test defaults
    api_gateway_url: Optional[str] = Field(
        default=None,
        alias="API_GATEWAY_URL",
        description="Base URL of the deployed API, skips the stack output lookup"
    )

    load_test_duration_seconds: int = Field(
        default=60,
        ge=1
    )

    load_test_arrival_rate: int = Field(
        default=10,
        ge=1,
        description="Requests per second per endpoint"
    )

    load_test_ramp_to: Optional[int] = Field(
        default=None,
        ge=1,
        description="Arrival rate reached at the end of the phase"
    )

    load_test_max_workers: int = Field(
        default=64,
        ge=1
    )

    load_test_timeout_seconds: float = Field(
        default=29.0,
        gt=0,
        description="Per-request timeout (API Gateway integration limit)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator('deployment_mode', mode='before')
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values."""
        if v:
            mode_mapping = {
                "mock": "aws-mock",
                "local-dev": "aws-mock",
                "cloud": "aws-prod",
                "prod": "aws-prod",
            }
            v = str(v).strip().lower()
            return mode_mapping.get(v, v)
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Upper-case the level name, unknown names fall back to INFO."""
        level = str(v or "INFO").strip().upper()
        if level not in logging.getLevelNamesMapping():
            return "INFO"
        return level

    @field_validator('deployment_mode')
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        if v not in VALID_DEPLOYMENT_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {VALID_DEPLOYMENT_MODES}")
        return v

    @model_validator(mode='after')
    def set_mock_defaults(self):
        """Point clients at a local endpoint with dummy credentials in aws-mock mode."""
        if self.deployment_mode == "aws-mock":
            if self.aws_endpoint_url is None:
                self.aws_endpoint_url = MOCK_ENDPOINT_URL
            if self.aws_access_key_id is None:
                self.aws_access_key_id = "mock"
            if self.aws_secret_access_key is None:
                self.aws_secret_access_key = "mock"
        return self

    @model_validator(mode='after')
    def validate_capacity_range(self):
        if self.min_capacity > self.max_capacity:
            raise ValueError(
                f"min_capacity ({self.min_capacity}) must not exceed max_capacity ({self.max_capacity})"
            )
        return self

    @property
    def effective_initial_capacity(self) -> int:
        """Initial capacity is never below the scaling minimum."""
        return max(self.initial_capacity, self.min_capacity)

    @property
    def deploy_region(self) -> str:
        """Region of the stack, the CDK CLI's profile region unless AWS_DEFAULT_REGION is set."""
        if 'aws_region' in self.model_fields_set:
            return self.aws_region
        return os.environ.get('CDK_DEFAULT_REGION') or self.aws_region

    def get_environment_dict(self) -> Dict[str, Any]:
        """Get configuration as a dictionary suitable for subprocess calls.

        Returns:
            Dictionary of environment variables
        """
        env_dict = {
            'DEPLOYMENT_MODE': self.deployment_mode,
            'STACK_NAME': self.stack_name,
            'LOG_LEVEL': self.log_level,
        }
        # Region left unset lets the CDK CLI take it from the profile
        if 'aws_region' in self.model_fields_set:
            env_dict['AWS_DEFAULT_REGION'] = self.aws_region
        if self.aws_profile:
            env_dict['AWS_PROFILE'] = self.aws_profile

        # Only include AWS credentials and endpoint for mock mode
        if self.deployment_mode == 'aws-mock':
            env_dict.update({
                'AWS_ENDPOINT_URL': self.aws_endpoint_url or '',
                'AWS_ACCESS_KEY_ID': self.aws_access_key_id or 'mock',
                'AWS_SECRET_ACCESS_KEY': self.aws_secret_access_key or 'mock',
            })

        return env_dict

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
