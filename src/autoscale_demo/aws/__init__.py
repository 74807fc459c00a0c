"""AWS helpers used by the CLI."""
