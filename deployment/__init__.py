"""
Deployment module for the autoscaling demo infrastructure.

This module contains the AWS CDK definitions:
- Reusable constructs (example function, autoscaled alias, API, dashboard)
- The stack wiring them together
"""
