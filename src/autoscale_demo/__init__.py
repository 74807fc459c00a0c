"""
Operator tooling for the Lambda provisioned concurrency autoscaling demo.

Contains settings shared with the CDK app, AWS client management, stack
output lookup, scaling status reporting, a load generator and the CLI.
"""
