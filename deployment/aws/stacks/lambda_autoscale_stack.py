"""
Stack comparing average and maximum utilization based autoscaling of
Lambda provisioned concurrency.

Architecture Overview:
1. Two copies of the example function, each published as a version
2. One alias scaled on the predefined (average) utilization metric, one on
   a custom maximum utilization metric
3. API Gateway with a GET endpoint per alias and a latency access log
4. CloudWatch dashboard comparing both
"""
from typing import Optional

from aws_cdk import CfnOutput, Duration, Stack
from cdk_nag import NagPackSuppression, NagSuppressions
from constructs import Construct

from autoscale_demo.aws.stack_outputs import API_URL_OUTPUT, DASHBOARD_NAME_OUTPUT, endpoint_output_key
from autoscale_demo.settings import Settings, get_settings
from deployment.aws.constructs import (
    ApiGatewayWithLatencyLog,
    AutoscaleProvisionedConcurrentLambda,
    DashboardFunction,
    Endpoint,
    ExampleLambda,
    MetricType,
    QuickDashboard,
    ScalingConfig,
)


class LambdaAutoscaleStack(Stack):

    def __init__(self, scope: Construct, construct_id: str,
                 settings: Optional[Settings] = None, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        settings = settings or get_settings()

        def example_lambda(construct_id: str) -> ExampleLambda:
            return ExampleLambda(
                self, construct_id,
                working_time_ms=settings.working_time_millis,
                cold_start_time_ms=settings.cold_start_time_millis,
                memory_size=settings.lambda_memory_size,
                log_level=settings.log_level,
            )

        def scaling_config(metric_type: MetricType) -> ScalingConfig:
            return ScalingConfig(
                initial_capacity=settings.initial_capacity,
                min_capacity=settings.min_capacity,
                max_capacity=settings.max_capacity,
                metric_type=metric_type,
                target_value=settings.target_value,
            )

        # function with the standard application auto scaling metric
        standard_lambda = AutoscaleProvisionedConcurrentLambda(
            self, "standard",
            handler=example_lambda("testFun1").handler,
            config=scaling_config(MetricType.STANDARD),
        )

        # function with the custom maximum utilization metric
        custom_lambda = AutoscaleProvisionedConcurrentLambda(
            self, "custom",
            handler=example_lambda("testFun2").handler,
            config=scaling_config(MetricType.MAXIMUM),
        )

        api_gateway = ApiGatewayWithLatencyLog(
            self, "testApiGW",
            endpoints=[
                Endpoint(name="standard", handler=standard_lambda.handler),
                Endpoint(name="custom", handler=custom_lambda.handler),
            ],
        )

        dashboard = QuickDashboard(
            self, "sampleDashboard",
            api=api_gateway.api,
            log_group=api_gateway.log,
            functions=[
                DashboardFunction(label="standardFun", function=standard_lambda.handler),
                DashboardFunction(label="customFun", function=custom_lambda.handler),
            ],
            period=Duration.seconds(settings.dashboard_period_seconds),
            dashboard_name=f"{construct_id}-dashboard",
        )

        CfnOutput(self, API_URL_OUTPUT, value=api_gateway.api.url)
        for endpoint in ("standard", "custom"):
            CfnOutput(
                self, endpoint_output_key(endpoint),
                value=api_gateway.api.url_for_path(f"/{endpoint}"),
            )
        CfnOutput(self, DASHBOARD_NAME_OUTPUT, value=dashboard.dashboard.dashboard_name)

        self._add_cdk_nag_suppressions()

    def _add_cdk_nag_suppressions(self) -> None:
        NagSuppressions.add_stack_suppressions(self, [
            NagPackSuppression(id="AwsSolutions-APIG2", reason="GET endpoints without input, nothing to validate"),
            NagPackSuppression(id="AwsSolutions-APIG3", reason="Short lived load test target, no WAF"),
            NagPackSuppression(id="AwsSolutions-APIG4", reason="Endpoints are public so load generators can call them"),
            NagPackSuppression(id="AwsSolutions-COG4", reason="Endpoints are public so load generators can call them"),
            NagPackSuppression(
                id="AwsSolutions-IAM4",
                reason="API Gateway CloudWatch role uses the AWS managed push-to-logs policy",
                applies_to=[
                    "Policy::arn:<AWS::Partition>:iam::aws:policy/service-role/AmazonAPIGatewayPushToCloudWatchLogs",
                ],
            ),
        ])
