"""AWS CDK constructs and stacks."""
