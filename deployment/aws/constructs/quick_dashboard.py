"""
Dashboard comparing API and Lambda metrics of autoscaled functions.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from aws_cdk import Duration, aws_apigateway as apigw, aws_cloudwatch as cloudwatch, aws_lambda as lambda_, aws_logs as logs
from constructs import Construct

SUMMARY_QUERY = """
fields responseLatency
| stats count(*) as count, min(responseLatency) as minimal, max(responseLatency) as maximal, pct(responseLatency, 50) as p50, pct(responseLatency, 90) as p90, pct(responseLatency, 99) as p99 by resourcePath, status"""


@dataclass
class DashboardFunction:
    """A function plotted on the dashboard."""
    label: str
    function: lambda_.IFunction


class QuickDashboard(Construct):
    """
    Dashboard with six graph widgets and a summary table showing metrics
    useful to analyze Lambda provisioned concurrency autoscaling.
    """

    def __init__(self, scope: Construct, construct_id: str,
                 api: apigw.RestApi,
                 log_group: logs.ILogGroup,
                 functions: Sequence[DashboardFunction],
                 period: Optional[Duration] = None,
                 dashboard_name: Optional[str] = None) -> None:
        super().__init__(scope, construct_id)

        period = period or Duration.seconds(30)

        # Latency is the time between API Gateway receiving a request and returning
        # the response, integration latency the time spent waiting for the backend.
        api_latency = cloudwatch.GraphWidget(
            title="Api Latency",
            width=8,
            left=[
                api.metric_latency(period=period),
                api.metric_integration_latency(period=period),
            ],
        )

        # Count of requests per period with client (4XX) and server (5XX) errors
        api_calls = cloudwatch.GraphWidget(
            title="Api Number of Calls",
            width=8,
            left=[
                api.metric_count(period=period),
                api.metric_client_error(period=period),
                api.metric_server_error(period=period),
            ],
        )

        api_calls_per_second = cloudwatch.GraphWidget(
            title="Api Calls Per Second",
            width=8,
            left=[
                cloudwatch.MathExpression(
                    expression="m1/PERIOD(m1)",
                    using_metrics={"m1": api.metric_count(period=Duration.seconds(60))},
                    label="ApiCallsPerSecond",
                    period=period,
                ),
            ],
        )

        # Latency statistics per endpoint and status from the access log
        summary = cloudwatch.LogQueryWidget(
            title="Summary",
            log_group_names=[log_group.log_group_name],
            width=16,
            view=cloudwatch.LogQueryVisualizationType.TABLE,
            query_string=SUMMARY_QUERY,
        )

        # Unsuffixed series count parallel instances, -Provisioned the ones from the provisioned pool
        concurrent_executions = cloudwatch.GraphWidget(
            title="Lambda Concurrent Executions",
            width=8,
            left=[
                f.function.metric("ConcurrentExecutions", period=period, label=f.label, statistic="max")
                for f in functions
            ] + [
                f.function.metric("ProvisionedConcurrentExecutions", period=period,
                                  label=f"{f.label}-Provisioned", statistic="max")
                for f in functions
            ],
        )

        # -Spillover series count invocations served outside the provisioned pool
        invocations = cloudwatch.GraphWidget(
            title="Lambda Invocations",
            width=8,
            left=[
                f.function.metric_invocations(period=period, label=f.label)
                for f in functions
            ] + [
                f.function.metric("ProvisionedConcurrencySpilloverInvocations", period=period,
                                  label=f"{f.label}-Spillover", statistic="sum")
                for f in functions
            ],
        )

        duration = cloudwatch.GraphWidget(
            title="Lambda Duration",
            width=8,
            left=[
                f.function.metric_duration(period=period, label=f"{f.label}-avg")
                for f in functions
            ] + [
                f.function.metric_duration(period=period, label=f"{f.label}-max", statistic="max")
                for f in functions
            ],
        )

        self.dashboard = cloudwatch.Dashboard(
            self, "Dashboard",
            dashboard_name=dashboard_name or construct_id,
            period_override=cloudwatch.PeriodOverride.AUTO,
            widgets=[
                [api_latency, api_calls, api_calls_per_second],
                [duration, invocations, concurrent_executions],
                [summary],
            ],
        )
