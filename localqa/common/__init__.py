"""Common utilities shared across components.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers and decorators.

Import pattern:
- from localqa.common.config import SearchConfig
- from localqa.common.logging import configure_logging
"""
