"""
Lambda alias with provisioned concurrency driven by Application Auto Scaling.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from aws_cdk import aws_applicationautoscaling as appscaling, aws_lambda as lambda_
from constructs import Construct

ALIAS_NAME = "PCAutoscaled"
SCALABLE_DIMENSION = "lambda:function:ProvisionedConcurrency"
UTILIZATION_METRIC = "ProvisionedConcurrencyUtilization"


class MetricType(Enum):
    """Metrics Application Auto Scaling can track for Lambda provisioned concurrency."""
    # predefined metric, average provisioned concurrency utilization
    STANDARD = "standard"
    # custom metric, maximum provisioned concurrency utilization
    MAXIMUM = "maximum"


@dataclass
class ScalingConfig:
    """
    Provisioned concurrency scaling parameters.

    Scale up triggers when utilization consistently exceeds ``target_value``;
    scale down triggers when it is consistently below 90 percent of it.
    """
    initial_capacity: int = 1
    min_capacity: int = 1
    max_capacity: int = 50
    metric_type: MetricType = MetricType.STANDARD
    target_value: float = 0.8

    def __post_init__(self):
        if self.min_capacity < 0:
            raise ValueError(f"min_capacity must not be negative, got {self.min_capacity}")
        if self.max_capacity < self.min_capacity:
            raise ValueError(
                f"max_capacity ({self.max_capacity}) must not be below min_capacity ({self.min_capacity})"
            )
        if not 0 < self.target_value <= 1:
            raise ValueError(f"target_value must be in (0, 1], got {self.target_value}")

    @property
    def effective_initial_capacity(self) -> int:
        return max(self.initial_capacity, self.min_capacity)


class AutoscaleProvisionedConcurrentLambda(Construct):
    """
    Creates a new alias for the given version scaled according to the config.

    Attributes:
        handler: The autoscaled alias
        scalable_target: Application Auto Scaling target of the alias
    """

    def __init__(self, scope: Construct, construct_id: str,
                 handler: lambda_.IVersion,
                 config: Optional[ScalingConfig] = None) -> None:
        super().__init__(scope, construct_id)

        config = config or ScalingConfig()

        # alias to set provisioned concurrency on
        alias = lambda_.Alias(
            self, "Alias",
            alias_name=ALIAS_NAME,
            version=handler,
            provisioned_concurrent_executions=config.effective_initial_capacity,
        )

        autoscaler = appscaling.ScalableTarget(
            self, "AutoScaler",
            service_namespace=appscaling.ServiceNamespace.LAMBDA,
            min_capacity=config.min_capacity,
            max_capacity=config.max_capacity,
            resource_id=f"function:{handler.lambda_.function_name}:{alias.alias_name}",
            scalable_dimension=SCALABLE_DIMENSION,
        )
        autoscaler.node.add_dependency(alias)

        if config.metric_type is MetricType.STANDARD:
            autoscaler.scale_to_track_metric(
                "PCUtilization",
                target_value=config.target_value,
                predefined_metric=appscaling.PredefinedMetric.LAMBDA_PROVISIONED_CONCURRENCY_UTILIZATION,
            )
        elif config.metric_type is MetricType.MAXIMUM:
            autoscaler.scale_to_track_metric(
                "PCUtilization",
                target_value=config.target_value,
                custom_metric=alias.metric(UTILIZATION_METRIC, statistic="max"),
            )
        else:
            raise ValueError(f"Unsupported metric type: {config.metric_type}")

        self.config = config
        self.scalable_target = autoscaler
        self.handler: lambda_.IAlias = alias
