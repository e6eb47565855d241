"""Single-provider appointment scheduling and availability engine."""
