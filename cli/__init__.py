"""Command-line client for the tank telemetry HTTP API."""
