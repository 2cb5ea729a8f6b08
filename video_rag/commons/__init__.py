"""Commons package - shared utilities, settings, telemetry and store adapters."""
