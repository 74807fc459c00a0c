"""boto3 clients shared by the operator tooling."""
import logging
from typing import Any, Dict

import boto3
from botocore.exceptions import ProfileNotFound

from autoscale_demo.settings import get_settings

logger = logging.getLogger(__name__)


class AWSClientManager:
    """One client per service, created from the current settings.

    aws-prod resolves credentials from the named profile (or the default
    chain). aws-mock passes the static credentials and endpoint of the
    local emulator.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.settings = get_settings()
        self.mode = self.settings.deployment_mode
        self.clients: Dict[str, Any] = {}
        self.session = self._create_session()
        logger.info(f"AWS clients for {self.mode} in {self.settings.aws_region}"
                    + (f" via {self.settings.aws_endpoint_url}" if self.mode == 'aws-mock' else ""))

    def _create_session(self) -> boto3.Session:
        profile = self.settings.aws_profile
        if profile and self.mode == 'aws-prod':
            try:
                return boto3.Session(profile_name=profile, region_name=self.settings.aws_region)
            except ProfileNotFound:
                logger.error(f"AWS profile {profile} not found, check AWS_PROFILE")
                raise

        return boto3.Session(
            aws_access_key_id=self.settings.aws_access_key_id,
            aws_secret_access_key=self.settings.aws_secret_access_key,
            region_name=self.settings.aws_region,
        )

    def get_client(self, service_name: str) -> Any:
        """Get or create the client of a service."""
        if service_name not in self.clients:
            endpoint_url = self.settings.aws_endpoint_url if self.mode == 'aws-mock' else None
            self.clients[service_name] = self.session.client(service_name, endpoint_url=endpoint_url)
            logger.debug(f"Created {service_name} client")
        return self.clients[service_name]

    @classmethod
    def reset(cls):
        """Forget the singleton so the next use re-reads settings."""
        cls._instance = None


def get_cloudformation_client():
    return AWSClientManager().get_client('cloudformation')


def get_application_autoscaling_client():
    return AWSClientManager().get_client('application-autoscaling')


def get_lambda_client():
    return AWSClientManager().get_client('lambda')


def get_apigateway_client():
    return AWSClientManager().get_client('apigateway')
