import json

import pytest
from aws_cdk import Duration
from aws_cdk.assertions import Match, Template

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
from deployment.aws.constructs.api_gateway_with_latency_log import latency_access_log_format


# ExampleLambda

def test_example_lambda_defaults(stack):
    example = ExampleLambda(stack, "testFun")
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::Lambda::Function", {
        "Handler": "workload.handler.lambda_handler",
        "Runtime": "python3.12",
        "MemorySize": 256,
        "TracingConfig": {"Mode": "Active"},
        "Environment": {
            "Variables": {
                "WORKING_TIME_MILLIS": "10",
                "COLD_START_TIME_MILLIS": "500",
                "LOG_LEVEL": "INFO",
            }
        },
    })
    template.resource_count_is("AWS::Lambda::Version", 1)
    assert example.role is not None


def test_example_lambda_custom_profile(stack):
    ExampleLambda(stack, "testFun", working_time_ms=0, cold_start_time_ms=1200, memory_size=512)
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::Lambda::Function", {
        "MemorySize": 512,
        "Environment": {
            "Variables": Match.object_like({
                "WORKING_TIME_MILLIS": "0",
                "COLD_START_TIME_MILLIS": "1200",
            })
        },
    })


def test_example_lambda_custom_role(stack):
    ExampleLambda(stack, "testFun")
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::IAM::Role", {
        "AssumeRolePolicyDocument": Match.object_like({
            "Statement": [Match.object_like({"Principal": {"Service": "lambda.amazonaws.com"}})]
        }),
        "ManagedPolicyArns": Match.any_value(),
    })
    template.has_resource("AWS::IAM::Role", {
        "Metadata": {
            "cdk_nag": {
                "rules_to_suppress": Match.array_with([
                    Match.object_like({"id": "AwsSolutions-IAM4"}),
                    Match.object_like({"id": "AwsSolutions-IAM5"}),
                ])
            }
        }
    })


def test_example_lambda_without_custom_role(stack):
    example = ExampleLambda(stack, "testFun", use_custom_role=False)

    assert example.role is None


def test_example_lambda_rejects_negative_times(stack):
    with pytest.raises(ValueError):
        ExampleLambda(stack, "testFun", working_time_ms=-1)


# AutoscaleProvisionedConcurrentLambda

def test_scaling_config_defaults():
    config = ScalingConfig()

    assert config.initial_capacity == 1
    assert config.min_capacity == 1
    assert config.max_capacity == 50
    assert config.metric_type is MetricType.STANDARD
    assert config.target_value == 0.8


@pytest.mark.parametrize("kwargs", [
    {"target_value": 0},
    {"target_value": 1.5},
    {"min_capacity": 5, "max_capacity": 2},
    {"min_capacity": -1},
])
def test_scaling_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ScalingConfig(**kwargs)


def test_standard_metric_scaling(stack):
    version = ExampleLambda(stack, "testFun").handler
    AutoscaleProvisionedConcurrentLambda(stack, "standard", handler=version)
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::Lambda::Alias", {
        "Name": "PCAutoscaled",
        "ProvisionedConcurrencyConfig": {"ProvisionedConcurrentExecutions": 1},
    })
    template.has_resource_properties("AWS::ApplicationAutoScaling::ScalableTarget", {
        "MinCapacity": 1,
        "MaxCapacity": 50,
        "ServiceNamespace": "lambda",
        "ScalableDimension": "lambda:function:ProvisionedConcurrency",
    })
    template.has_resource_properties("AWS::ApplicationAutoScaling::ScalingPolicy", {
        "PolicyType": "TargetTrackingScaling",
        "TargetTrackingScalingPolicyConfiguration": Match.object_like({
            "TargetValue": 0.8,
            "PredefinedMetricSpecification": {
                "PredefinedMetricType": "LambdaProvisionedConcurrencyUtilization"
            },
        }),
    })


def test_maximum_metric_scaling(stack):
    version = ExampleLambda(stack, "testFun").handler
    AutoscaleProvisionedConcurrentLambda(
        stack, "custom",
        handler=version,
        config=ScalingConfig(metric_type=MetricType.MAXIMUM, target_value=0.5),
    )
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::ApplicationAutoScaling::ScalingPolicy", {
        "PolicyType": "TargetTrackingScaling",
        "TargetTrackingScalingPolicyConfiguration": Match.object_like({
            "TargetValue": 0.5,
            "CustomizedMetricSpecification": Match.object_like({
                "MetricName": "ProvisionedConcurrencyUtilization",
                "Namespace": "AWS/Lambda",
                "Statistic": "Maximum",
            }),
        }),
    })


def test_initial_capacity_raised_to_minimum(stack):
    version = ExampleLambda(stack, "testFun").handler
    AutoscaleProvisionedConcurrentLambda(
        stack, "standard",
        handler=version,
        config=ScalingConfig(initial_capacity=0, min_capacity=3, max_capacity=10),
    )
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::Lambda::Alias", {
        "ProvisionedConcurrencyConfig": {"ProvisionedConcurrentExecutions": 3},
    })
    template.has_resource_properties("AWS::ApplicationAutoScaling::ScalableTarget", {
        "MinCapacity": 3,
        "MaxCapacity": 10,
    })


def test_scalable_target_depends_on_alias(stack):
    version = ExampleLambda(stack, "testFun").handler
    AutoscaleProvisionedConcurrentLambda(stack, "standard", handler=version)
    template = Template.from_stack(stack)

    alias_ids = list(template.find_resources("AWS::Lambda::Alias"))
    targets = list(template.find_resources("AWS::ApplicationAutoScaling::ScalableTarget").values())

    assert len(alias_ids) == 1
    assert alias_ids[0] in targets[0]["DependsOn"]


# ApiGatewayWithLatencyLog

def test_access_log_format_includes_latencies():
    fields = json.loads(latency_access_log_format().to_string())

    assert fields["integrationLatency"] == "$context.integrationLatency"
    assert fields["responseLatency"] == "$context.responseLatency"
    assert fields["resourcePath"] == "$context.resourcePath"
    assert fields["status"] == "$context.status"


def test_api_gateway_endpoints(stack):
    first = ExampleLambda(stack, "fun1").function
    second = ExampleLambda(stack, "fun2").function
    api = ApiGatewayWithLatencyLog(stack, "api", endpoints=[
        Endpoint(name="standard", handler=first),
        Endpoint(name="custom", handler=second),
    ])
    template = Template.from_stack(stack)

    template.resource_count_is("AWS::ApiGateway::Method", 2)
    template.has_resource_properties("AWS::ApiGateway::Resource", {"PathPart": "standard"})
    template.has_resource_properties("AWS::ApiGateway::Resource", {"PathPart": "custom"})
    template.has_resource_properties("AWS::ApiGateway::Method", {
        "HttpMethod": "GET",
        "AuthorizationType": "NONE",
        "MethodResponses": [{"StatusCode": "200"}],
    })
    assert api.api is not None
    assert api.log is not None


def test_api_gateway_stage_logging(stack):
    handler = ExampleLambda(stack, "fun").function
    ApiGatewayWithLatencyLog(stack, "api", endpoints=[Endpoint(name="standard", handler=handler)])
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::ApiGateway::Stage", {
        "TracingEnabled": True,
        "AccessLogSetting": Match.object_like({"DestinationArn": Match.any_value()}),
        "MethodSettings": Match.array_with([
            Match.object_like({
                "LoggingLevel": "INFO",
                "DataTraceEnabled": True,
                "MetricsEnabled": True,
            })
        ]),
    })
    template.has_resource("AWS::Logs::LogGroup", {"DeletionPolicy": "Delete"})

    stage = next(iter(template.find_resources("AWS::ApiGateway::Stage").values()))
    assert "$context.responseLatency" in stage["Properties"]["AccessLogSetting"]["Format"]


def test_api_gateway_rejects_duplicate_endpoints(stack):
    handler = ExampleLambda(stack, "fun").function
    with pytest.raises(ValueError):
        ApiGatewayWithLatencyLog(stack, "api", endpoints=[
            Endpoint(name="standard", handler=handler),
            Endpoint(name="standard", handler=handler),
        ])


# QuickDashboard

def test_dashboard_widgets(stack):
    handler = ExampleLambda(stack, "fun").function
    api = ApiGatewayWithLatencyLog(stack, "api", endpoints=[Endpoint(name="standard", handler=handler)])
    QuickDashboard(
        stack, "sampleDashboard",
        api=api.api,
        log_group=api.log,
        functions=[DashboardFunction(label="standardFun", function=handler)],
        period=Duration.seconds(60),
    )
    template = Template.from_stack(stack)

    template.resource_count_is("AWS::CloudWatch::Dashboard", 1)
    template.has_resource_properties("AWS::CloudWatch::Dashboard", {"DashboardName": "sampleDashboard"})

    body = json.dumps(template.find_resources("AWS::CloudWatch::Dashboard"))
    for title in ["Api Latency", "Api Number of Calls", "Api Calls Per Second", "Summary",
                  "Lambda Concurrent Executions", "Lambda Invocations", "Lambda Duration"]:
        assert title in body
    assert "m1/PERIOD(m1)" in body
    assert "ProvisionedConcurrencySpilloverInvocations" in body
    assert "standardFun-Provisioned" in body
    assert "pct(responseLatency, 99)" in body
