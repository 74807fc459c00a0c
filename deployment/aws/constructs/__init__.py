from deployment.aws.constructs.example_lambda import ExampleLambda
from deployment.aws.constructs.autoscale_provisioned_concurrent_lambda import (
    AutoscaleProvisionedConcurrentLambda,
    MetricType,
    ScalingConfig,
)
from deployment.aws.constructs.api_gateway_with_latency_log import ApiGatewayWithLatencyLog, Endpoint
from deployment.aws.constructs.quick_dashboard import DashboardFunction, QuickDashboard

__all__ = [
    "ExampleLambda",
    "AutoscaleProvisionedConcurrentLambda",
    "MetricType",
    "ScalingConfig",
    "ApiGatewayWithLatencyLog",
    "Endpoint",
    "DashboardFunction",
    "QuickDashboard",
]
