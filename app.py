#!/usr/bin/env python3
import aws_cdk as cdk
from cdk_nag import AwsSolutionsChecks

from autoscale_demo.settings import get_settings
from deployment.aws.stacks.lambda_autoscale_stack import LambdaAutoscaleStack

settings = get_settings()

app = cdk.App()
LambdaAutoscaleStack(
    app, settings.stack_name,
    settings=settings,
    env=cdk.Environment(account=settings.aws_account_id, region=settings.deploy_region),
)
cdk.Aspects.of(app).add(AwsSolutionsChecks(verbose=True))

app.synth()
