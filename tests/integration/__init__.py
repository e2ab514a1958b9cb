"""End-to-end tests through the service facade and the CLI."""
