"""
Simulated workload Lambda.

Sleeps once per execution environment to imitate a cold start and on every
invocation to imitate request processing.
"""
