"""
REST API with a Lambda integration per endpoint and a latency-aware access log.
"""
import json
from dataclasses import dataclass
from typing import Sequence

from aws_cdk import RemovalPolicy, aws_apigateway as apigw, aws_iam as iam, aws_lambda as lambda_, aws_logs as logs
from constructs import Construct


@dataclass
class Endpoint:
    """A ``GET /<name>`` resource backed by a Lambda handler."""
    name: str
    handler: lambda_.IFunction


def latency_access_log_format() -> apigw.AccessLogFormat:
    """Standard JSON access log fields extended with integration and response latency."""
    return apigw.AccessLogFormat.custom(json.dumps({
        "requestId": apigw.AccessLogField.context_request_id(),
        "extendedRequestId": apigw.AccessLogField.context_extended_request_id(),
        "ip": apigw.AccessLogField.context_identity_source_ip(),
        "caller": apigw.AccessLogField.context_identity_caller(),
        "user": apigw.AccessLogField.context_identity_user(),
        "requestTime": apigw.AccessLogField.context_request_time(),
        "httpMethod": apigw.AccessLogField.context_http_method(),
        "resourcePath": apigw.AccessLogField.context_resource_path(),
        "status": apigw.AccessLogField.context_status(),
        "protocol": apigw.AccessLogField.context_protocol(),
        "responseLength": apigw.AccessLogField.context_response_length(),
        "integrationLatency": apigw.AccessLogField.context_integration_latency(),
        "responseLatency": apigw.AccessLogField.context_response_latency(),
    }))


class ApiGatewayWithLatencyLog(Construct):
    """
    ApiGateway with Lambda integration for each given endpoint.

    Attributes:
        api: The REST API
        log: Access log group of the deployment stage
    """

    def __init__(self, scope: Construct, construct_id: str, endpoints: Sequence[Endpoint]) -> None:
        super().__init__(scope, construct_id)

        names = [e.name for e in endpoints]
        if len(set(names)) != len(names):
            raise ValueError(f"Endpoint names must be unique, got {names}")

        # Log group for API Gateway access logs
        log_group = logs.LogGroup(
            self, "RestApiLogs",
            removal_policy=RemovalPolicy.DESTROY
        )
        log_group.grant_write(iam.ServicePrincipal("apigateway.amazonaws.com"))

        api = apigw.RestApi(
            self, "RestApi",
            cloud_watch_role=True,
            deploy_options=apigw.StageOptions(
                access_log_destination=apigw.LogGroupLogDestination(log_group),
                access_log_format=latency_access_log_format(),
                logging_level=apigw.MethodLoggingLevel.INFO,
                data_trace_enabled=True,
                tracing_enabled=True,
                metrics_enabled=True,
            ),
        )

        for endpoint in endpoints:
            api.root.add_resource(endpoint.name).add_method(
                "GET",
                apigw.LambdaIntegration(endpoint.handler),
                method_responses=[apigw.MethodResponse(status_code="200")],
                authorization_type=apigw.AuthorizationType.NONE,
            )

        self.api = api
        self.log: logs.ILogGroup = log_group
