"""
Example Lambda function simulating working time and cold start time.
"""
from pathlib import Path
from typing import Optional

from aws_cdk import BundlingOptions, aws_iam as iam, aws_lambda as lambda_
from cdk_nag import NagPackSuppression, NagSuppressions
from constructs import Construct

# src/ holds the workload package shipped as the function code
LAMBDA_SOURCE_DIR = str(Path(__file__).resolve().parents[3] / "src")
LAMBDA_HANDLER = "workload.handler.lambda_handler"
LAMBDA_RUNTIME = lambda_.Runtime.PYTHON_3_12

DEFAULT_WORKING_TIME_MS = 10
DEFAULT_COLD_START_TIME_MS = 500
DEFAULT_MEMORY_SIZE = 256


class ExampleLambda(Construct):
    """
    Example lambda function which simulates working time and cold start time.

    Attributes:
        function: The Lambda function
        handler: Published version of the function, the unit provisioned
            concurrency is configured on
        role: Custom execution role, None when the default role is used
    """

    def __init__(self, scope: Construct, construct_id: str,
                 working_time_ms: Optional[int] = None,
                 cold_start_time_ms: Optional[int] = None,
                 memory_size: int = DEFAULT_MEMORY_SIZE,
                 use_custom_role: bool = True,
                 log_level: str = "INFO") -> None:
        super().__init__(scope, construct_id)

        working_time_ms = DEFAULT_WORKING_TIME_MS if working_time_ms is None else working_time_ms
        cold_start_time_ms = DEFAULT_COLD_START_TIME_MS if cold_start_time_ms is None else cold_start_time_ms
        if working_time_ms < 0 or cold_start_time_ms < 0:
            raise ValueError("working_time_ms and cold_start_time_ms must not be negative")

        self.role: Optional[iam.Role] = None
        if use_custom_role:
            self.role = iam.Role(
                self, "CustomRole",
                assumed_by=iam.ServicePrincipal("lambda.amazonaws.com")
            )

        self.function = lambda_.Function(
            self, "Fun",
            runtime=LAMBDA_RUNTIME,
            handler=LAMBDA_HANDLER,
            code=lambda_.Code.from_asset(
                LAMBDA_SOURCE_DIR,
                exclude=["autoscale_demo", "**/__pycache__", "*.egg-info"],
                bundling=BundlingOptions(
                    image=LAMBDA_RUNTIME.bundling_image,
                    command=[
                        "bash", "-c",
                        "pip install -r workload/requirements.txt -t /asset-output && cp -au . /asset-output",
                    ],
                ),
            ),
            memory_size=memory_size,
            environment={
                "WORKING_TIME_MILLIS": str(working_time_ms),
                "COLD_START_TIME_MILLIS": str(cold_start_time_ms),
                "LOG_LEVEL": log_level,
            },
            tracing=lambda_.Tracing.ACTIVE,
            role=self.role,
        )

        self.handler: lambda_.IVersion = self.function.current_version

        if self.role is not None:
            # allow executing this function and writing logs to CloudWatch
            self.role.add_managed_policy(
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole")
            )
            self._add_cdk_nag_suppressions(self.role)

    @staticmethod
    def _add_cdk_nag_suppressions(role: iam.Role) -> None:
        NagSuppressions.add_resource_suppressions(role, [
            NagPackSuppression(
                id="AwsSolutions-IAM4",
                reason="AWSLambdaBasicExecutionRole is already at minimal scope",
            ),
            NagPackSuppression(
                id="AwsSolutions-IAM5",
                reason="cannot scope down xray resources, must be *",
                applies_to=["Resource::*"],
            ),
        ], True)
