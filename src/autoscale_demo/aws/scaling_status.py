"""
Provisioned concurrency auto-scaling status of the demo functions.
"""
import logging
from typing import Any, Dict, List, Optional, Set

from botocore.exceptions import ClientError

from autoscale_demo.aws.clients import (
    get_application_autoscaling_client,
    get_cloudformation_client,
    get_lambda_client,
)
from autoscale_demo.aws.stack_outputs import StackOutputError

logger = logging.getLogger(__name__)

ALIAS_NAME = "PCAutoscaled"
SERVICE_NAMESPACE = "lambda"
SCALABLE_DIMENSION = "lambda:function:ProvisionedConcurrency"
FUNCTION_RESOURCE_TYPE = "AWS::Lambda::Function"


def parse_resource_id(resource_id: str) -> Dict[str, str]:
    """Split ``function:<name>:<alias>`` into its function name and qualifier."""
    kind, _, rest = resource_id.partition(":")
    function_name, _, qualifier = rest.rpartition(":")
    if kind != "function" or not function_name or not qualifier:
        raise ValueError(f"Not a Lambda alias resource id: {resource_id}")
    return {"function_name": function_name, "qualifier": qualifier}


def describe_metric(policy: Dict[str, Any]) -> Dict[str, Any]:
    """Summarize which metric a target tracking policy follows."""
    config = policy.get('TargetTrackingScalingPolicyConfiguration', {})
    summary = {
        "policy_name": policy.get('PolicyName'),
        "target_value": config.get('TargetValue'),
    }
    if 'PredefinedMetricSpecification' in config:
        summary["metric"] = config['PredefinedMetricSpecification'].get('PredefinedMetricType')
        summary["metric_kind"] = "predefined"
        summary["statistic"] = "Average"
    elif 'CustomizedMetricSpecification' in config:
        custom = config['CustomizedMetricSpecification']
        summary["metric"] = custom.get('MetricName')
        summary["metric_kind"] = "customized"
        summary["statistic"] = custom.get('Statistic')
    else:
        summary["metric_kind"] = "unknown"
    return summary


class ProvisionedConcurrencyStatus:
    """Reads scaling targets, policies and provisioned concurrency of the demo aliases.

    With a stack name, only aliases of the functions that stack owns are
    reported. Functions are looked up among the stack resources because
    CloudFormation truncates the stack name inside long physical names.
    """

    def __init__(self, stack_name: Optional[str] = None,
                 autoscaling_client=None, lambda_client=None,
                 cloudformation_client=None, max_activities: int = 5):
        self.stack_name = stack_name
        self.autoscaling_client = autoscaling_client or get_application_autoscaling_client()
        self.lambda_client = lambda_client or get_lambda_client()
        self.cloudformation_client = cloudformation_client
        self.max_activities = max_activities

    def stack_function_names(self) -> Set[str]:
        """Physical names of the Lambda functions of the stack."""
        client = self.cloudformation_client or get_cloudformation_client()
        names = set()
        try:
            paginator = client.get_paginator('list_stack_resources')
            for page in paginator.paginate(StackName=self.stack_name):
                for resource in page.get('StackResourceSummaries', []):
                    if resource.get('ResourceType') == FUNCTION_RESOURCE_TYPE:
                        names.add(resource['PhysicalResourceId'])
        except ClientError as e:
            logger.error(f"Failed to list resources of stack {self.stack_name}: {e}")
            raise StackOutputError(f"Stack {self.stack_name} not found or not accessible") from e
        logger.debug(f"Functions of stack {self.stack_name}: {sorted(names)}")
        return names

    def list_resource_ids(self) -> List[str]:
        """Resource ids of the autoscaled aliases, optionally limited to one stack."""
        function_names = self.stack_function_names() if self.stack_name else None
        resource_ids = []
        paginator = self.autoscaling_client.get_paginator('describe_scalable_targets')
        for page in paginator.paginate(ServiceNamespace=SERVICE_NAMESPACE):
            for target in page.get('ScalableTargets', []):
                resource_id = target['ResourceId']
                if (target.get('ScalableDimension') != SCALABLE_DIMENSION
                        or not resource_id.startswith("function:")
                        or not resource_id.endswith(f":{ALIAS_NAME}")):
                    continue
                if function_names is not None \
                        and parse_resource_id(resource_id)["function_name"] not in function_names:
                    continue
                resource_ids.append(resource_id)
        return sorted(resource_ids)

    def get_status(self, resource_id: str) -> Dict[str, Any]:
        """Get current scaling status of one alias."""
        try:
            response = self.autoscaling_client.describe_scalable_targets(
                ServiceNamespace=SERVICE_NAMESPACE,
                ResourceIds=[resource_id],
                ScalableDimension=SCALABLE_DIMENSION
            )
            if not response.get('ScalableTargets'):
                return {"status": "not_configured", "resource_id": resource_id}
            target = response['ScalableTargets'][0]

            policies = self.autoscaling_client.describe_scaling_policies(
                ServiceNamespace=SERVICE_NAMESPACE,
                ResourceId=resource_id,
                ScalableDimension=SCALABLE_DIMENSION
            ).get('ScalingPolicies', [])

            activities = self.autoscaling_client.describe_scaling_activities(
                ServiceNamespace=SERVICE_NAMESPACE,
                ResourceId=resource_id,
                ScalableDimension=SCALABLE_DIMENSION,
                MaxResults=self.max_activities
            ).get('ScalingActivities', [])

            status = {
                "status": "active",
                "resource_id": resource_id,
                **parse_resource_id(resource_id),
                "min_capacity": target['MinCapacity'],
                "max_capacity": target['MaxCapacity'],
                "policies": [describe_metric(p) for p in policies],
                "recent_activities": [
                    {
                        "start_time": a.get('StartTime'),
                        "status": a.get('StatusCode'),
                        "description": a.get('Description'),
                    }
                    for a in activities
                ],
            }
            status["provisioned_concurrency"] = self._get_provisioned_concurrency(
                status["function_name"], status["qualifier"]
            )
            return status

        except (ClientError, ValueError) as e:
            logger.error(f"Failed to get scaling status for {resource_id}: {e}")
            return {"status": "error", "resource_id": resource_id, "error": str(e)}

    def _get_provisioned_concurrency(self, function_name: str, qualifier: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.lambda_client.get_provisioned_concurrency_config(
                FunctionName=function_name,
                Qualifier=qualifier
            )
        except ClientError as e:
            logger.warning(f"No provisioned concurrency config for {function_name}:{qualifier}: {e}")
            return None
        return {
            "requested": response.get('RequestedProvisionedConcurrentExecutions'),
            "allocated": response.get('AllocatedProvisionedConcurrentExecutions'),
            "available": response.get('AvailableProvisionedConcurrentExecutions'),
            "status": response.get('Status'),
        }

    def get_all_status(self) -> Dict[str, Dict[str, Any]]:
        """Get scaling status for all autoscaled aliases."""
        return {resource_id: self.get_status(resource_id) for resource_id in self.list_resource_ids()}
