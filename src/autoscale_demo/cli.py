# cli.py
import asyncio
import json
import logging
import os
import subprocess
import time

import click

from autoscale_demo.aws.scaling_status import ProvisionedConcurrencyStatus
from autoscale_demo.aws.stack_outputs import ENDPOINTS, StackOutputError, resolve_endpoint_urls
from autoscale_demo.loadtest import LoadPhase, LoadTester, summarize
from autoscale_demo.settings import get_settings

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", is_flag=True, help="Verbose logging")
def cli(verbose):
    """CLI commands for deploying and exercising the autoscaling demo"""
    settings = get_settings()
    log_level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(level=log_level, format='%(levelname)s: %(message)s')


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  Deployment Mode: {settings.deployment_mode}")
    print(f"  AWS Region: {settings.aws_region}")
    print(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    print(f"  Stack Name: {settings.stack_name}")
    print(f"  Working Time (ms): {settings.working_time_millis}")
    print(f"  Cold Start Time (ms): {settings.cold_start_time_millis}")
    print(f"  Provisioned Concurrency: initial {settings.effective_initial_capacity}, "
          f"range {settings.min_capacity}-{settings.max_capacity}")
    print(f"  Target Utilization: {settings.target_value}")


def _run_cdk(*args):
    settings = get_settings()
    command = ["cdk", *args]
    env = {**os.environ, **settings.get_environment_dict()}
    print(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(command, env=env)
    except FileNotFoundError:
        raise click.ClickException("cdk CLI not found, install it with: npm install -g aws-cdk")
    if result.returncode != 0:
        raise click.ClickException(f"{' '.join(command)} failed with exit code {result.returncode}")


@cli.command()
def synth():
    """Synthesize the CloudFormation template"""
    _run_cdk("synth", get_settings().stack_name)


@cli.command()
@click.option("--require-approval", type=click.Choice(["never", "any-change", "broadening"]),
              default="never", help="Approval level for security sensitive changes")
def deploy(require_approval):
    """Deploy the stack"""
    settings = get_settings()
    _run_cdk("deploy", settings.stack_name, "--require-approval", require_approval)
    print(f"✅ Stack {settings.stack_name} deployed")


@cli.command()
@click.option("--force", is_flag=True, help="Do not ask for confirmation")
def destroy(force):
    """Destroy the stack"""
    settings = get_settings()
    args = ["destroy", settings.stack_name]
    if force:
        args.append("--force")
    _run_cdk(*args)


@cli.command()
def endpoints():
    """Show the endpoint URLs of the deployed API"""
    try:
        urls = resolve_endpoint_urls()
    except StackOutputError as e:
        raise click.ClickException(str(e))
    for name, url in urls.items():
        print(f"{name}: {url}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scaling_status(as_json):
    """Show provisioned concurrency auto-scaling status"""
    settings = get_settings()
    try:
        status = ProvisionedConcurrencyStatus(stack_name=settings.stack_name).get_all_status()
    except StackOutputError as e:
        raise click.ClickException(str(e))

    if as_json:
        print(json.dumps(status, indent=2, default=str))
        return

    if not status:
        print(f"No autoscaled aliases found for stack {settings.stack_name}")
        return

    print("🔧 Provisioned Concurrency Auto-scaling Status")
    print("=" * 50)
    for resource_id, target in status.items():
        print(f"\n📊 Target: {resource_id}")
        if target.get("status") == "active":
            print(f"   Status: ✅ Active")
            print(f"   Range: {target['min_capacity']}-{target['max_capacity']} (min-max)")
            for policy in target["policies"]:
                print(f"   Policy: {policy['policy_name']} tracks {policy.get('metric')} "
                      f"({policy.get('statistic')}) at {policy.get('target_value')}")
            pc = target.get("provisioned_concurrency")
            if pc:
                print(f"   Provisioned: {pc['allocated']}/{pc['requested']} (allocated/requested), "
                      f"available {pc['available']}, {pc['status']}")
            for activity in target["recent_activities"]:
                print(f"   - {activity['start_time']} {activity['status']}: {activity['description']}")
        elif target.get("status") == "error":
            print(f"   Status: ❌ Error")
            print(f"   Error: {target.get('error', 'Unknown error')}")
        else:
            print(f"   Status: ⚠️ {target.get('status', 'Unknown')}")
    print("\n" + "=" * 50)


@cli.command()
@click.option("--endpoint", "endpoint_names", type=click.Choice([*ENDPOINTS, "all"]),
              default="all", help="Which endpoint to load")
@click.option("--duration", type=int, default=None, help="Phase duration in seconds")
@click.option("--rate", type=int, default=None, help="Requests per second per endpoint")
@click.option("--ramp-to", type=int, default=None, help="Rate reached at the end of the phase")
@click.option("--warmup", type=int, default=0, help="Seconds at the starting rate before the phase")
@click.option("--json", "as_json", is_flag=True, help="Output summary as JSON")
def load_test(endpoint_names, duration, rate, ramp_to, warmup, as_json):
    """Send load to the deployed endpoints and summarize latencies"""
    settings = get_settings()
    names = ENDPOINTS if endpoint_names == "all" else (endpoint_names,)
    try:
        urls = resolve_endpoint_urls(names)
    except StackOutputError as e:
        raise click.ClickException(str(e))

    rate = rate or settings.load_test_arrival_rate
    phases = []
    if warmup > 0:
        phases.append(LoadPhase(duration_seconds=warmup, arrival_rate=rate))
    phases.append(LoadPhase(
        duration_seconds=duration or settings.load_test_duration_seconds,
        arrival_rate=rate,
        ramp_to=ramp_to or settings.load_test_ramp_to,
    ))

    tester = LoadTester(
        urls,
        phases,
        max_workers=settings.load_test_max_workers,
        timeout_seconds=settings.load_test_timeout_seconds,
    )
    summaries = summarize(tester.run())

    if as_json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
        return

    print(f"{'endpoint':<10} {'status':<6} {'count':>7} {'min':>9} {'max':>9} {'p50':>9} {'p90':>9} {'p99':>9}")
    for s in summaries:
        print(f"{s.endpoint:<10} {s.status:<6} {s.count:>7} {s.minimal:>9.1f} {s.maximal:>9.1f} "
              f"{s.p50:>9.1f} {s.p90:>9.1f} {s.p99:>9.1f}")


@cli.command()
@click.option("--count", type=int, default=3, help="Number of invocations")
def invoke_local(count):
    """Invoke the simulated workload in-process and show cold vs warm latency"""
    from workload.handler import SimulatedWorkloadHandler
    from workload.settings import WorkloadSettings

    async def run():
        handler = SimulatedWorkloadHandler(WorkloadSettings())
        for i in range(count):
            started = time.perf_counter()
            response = await handler.handle()
            elapsed = (time.perf_counter() - started) * 1000
            kind = "cold" if i == 0 else "warm"
            print(f"#{i + 1} {kind}: {response['statusCode']} {response['body']} in {elapsed:.1f} ms")

    asyncio.run(run())


if __name__ == "__main__":
    cli()
