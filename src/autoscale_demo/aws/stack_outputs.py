"""
Lookup of the deployed stack's endpoints.
"""
import logging
import os
from typing import Dict, Iterable, Optional

from botocore.exceptions import ClientError

from autoscale_demo.aws.clients import get_apigateway_client, get_cloudformation_client
from autoscale_demo.settings import get_settings

logger = logging.getLogger(__name__)

ENDPOINTS = ("standard", "custom")
API_URL_OUTPUT = "ApiUrl"
DASHBOARD_NAME_OUTPUT = "DashboardName"
DEFAULT_STAGE = "prod"


class StackOutputError(Exception):
    """Raised when the deployed stack or one of its outputs cannot be found."""


def endpoint_output_key(endpoint: str) -> str:
    """Output key under which the stack exports the URL of an endpoint."""
    return f"{endpoint[:1].upper()}{endpoint[1:]}Endpoint"


def get_stack_outputs(stack_name: str, cloudformation_client=None) -> Dict[str, str]:
    """Return the outputs of a deployed stack keyed by OutputKey."""
    client = cloudformation_client or get_cloudformation_client()
    try:
        response = client.describe_stacks(StackName=stack_name)
    except ClientError as e:
        logger.error(f"Failed to describe stack {stack_name}: {e}")
        raise StackOutputError(f"Stack {stack_name} not found or not accessible") from e

    stacks = response.get('Stacks', [])
    if not stacks:
        raise StackOutputError(f"Stack {stack_name} not found")

    outputs = {o['OutputKey']: o['OutputValue'] for o in stacks[0].get('Outputs', [])}
    logger.debug(f"Stack {stack_name} outputs: {outputs}")
    return outputs


class APIGatewayManager:
    """Build invoke URLs from a REST API id."""

    def __init__(self, region: str, apigateway_client=None):
        self.region = region
        self.apigateway_client = apigateway_client or get_apigateway_client()

    def get_api_gateway_url(self, api_id: str, stage: str = DEFAULT_STAGE) -> str:
        """
        Get API Gateway invoke URL from API ID.

        Args:
            api_id: The REST API id
            stage: Deployment stage name

        Returns:
            Stage invoke URL ending with a slash
        """
        try:
            response = self.apigateway_client.get_rest_api(restApiId=api_id)
        except ClientError as e:
            logger.error(f"Failed to retrieve API Gateway {api_id}: {e}")
            raise StackOutputError(f"API Gateway {api_id} not found") from e

        api_url = f"https://{api_id}.execute-api.{self.region}.amazonaws.com/{stage}/"
        logger.info(f"Retrieved API Gateway URL: {api_url} (name: {response.get('name', 'unknown')})")
        return api_url


def resolve_endpoint_urls(endpoints: Iterable[str] = ENDPOINTS,
                          stack_name: Optional[str] = None,
                          cloudformation_client=None) -> Dict[str, str]:
    """
    Resolve the invoke URL of every endpoint.

    Priority:
    1. API_GATEWAY_URL setting (base URL, endpoint appended)
    2. API_GATEWAY_ID environment variable (URL built from the REST API)
    3. Outputs of the deployed stack
    """
    settings = get_settings()
    endpoints = list(endpoints)

    base_url = settings.api_gateway_url
    if not base_url and os.environ.get('API_GATEWAY_ID'):
        base_url = APIGatewayManager(settings.aws_region).get_api_gateway_url(
            os.environ['API_GATEWAY_ID']
        )

    if base_url:
        logger.info(f"Using API Gateway URL: {base_url}")
        return {name: f"{base_url.rstrip('/')}/{name}" for name in endpoints}

    outputs = get_stack_outputs(stack_name or settings.stack_name, cloudformation_client)
    urls = {}
    for name in endpoints:
        key = endpoint_output_key(name)
        if key in outputs:
            urls[name] = outputs[key]
        elif API_URL_OUTPUT in outputs:
            urls[name] = f"{outputs[API_URL_OUTPUT].rstrip('/')}/{name}"
        else:
            raise StackOutputError(f"Stack has no output {key} for endpoint {name}")
    return urls
