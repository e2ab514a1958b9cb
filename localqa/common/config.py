"""Configuration management for the retrieval components.

This module centralizes environment-driven configuration for chunking,
encoding, and search. It builds on ``pydantic_settings.BaseSettings`` so
configuration can be provided via environment variables, ``.env`` files, or
defaults.

Highlights
- Strongly-typed settings with validated defaults
- One place to discover every tunable the pipeline reads
- Small component-specific subclasses to keep concerns clear

Usage
- Inject the appropriate config at construction time:
  ``config = SearchConfig()``
- Or select dynamically: ``config = get_config("ingestion")``
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

VECTOR_DIMENSION = 384
HASH_COUNT = 3


class BaseConfig(BaseSettings):
    """Base configuration shared by every component.

    Parameters are read from the process environment using the upper-cased
    field name (``QA_VECTOR_DIMENSION`` for ``qa_vector_dimension``).

    Notes
    - Vector dimension and hashing settings live here because the encoder,
      the store, and similarity computation must agree on them.
    - Changing any encoding setting makes previously stored vectors
      incomparable with new ones; re-ingest after changing them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    qa_env: str = Field(default="local")

    # Logging
    qa_log_level: str = Field(default="INFO")
    qa_log_format: str = Field(default="json")

    # Encoding
    qa_vector_dimension: int = Field(default=VECTOR_DIMENSION, ge=1)
    qa_hash_count: int = Field(default=HASH_COUNT, ge=1)
    qa_max_terms: int = Field(default=100, ge=1)
    qa_min_term_length: int = Field(default=3, ge=1)
    qa_max_term_length: int = Field(default=19, ge=1)


class IngestionConfig(BaseConfig):
    """Configuration for document ingestion.

    Adds chunking constants and the cooperative-yield interval used while
    encoding a batch.
    """

    qa_chunk_size: int = Field(default=500, ge=1)
    qa_chunk_overlap: int = Field(default=50, ge=0)
    qa_min_text_length: int = Field(default=10, ge=0)
    qa_batch_yield_interval: int = Field(default=32, ge=1)


class SearchConfig(BaseConfig):
    """Configuration for search.

    Keeps thresholds, result sizes, and ranking weights together.
    """

    qa_similarity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    qa_default_top_k: int = Field(default=5, ge=1)
    qa_keyword_weight: float = Field(default=0.1, ge=0.0)
    qa_strict_dimensions: bool = Field(default=False)
    qa_suggestion_limit: int = Field(default=5, ge=1)


def get_config(component: str) -> BaseConfig:
    """Get configuration for a specific component.

    Parameters
    - component: ``ingestion`` or ``search``

    Returns
    - A concrete ``BaseConfig`` subclass pre-wired to read the right env vars.
    """
    config_map = {
        "ingestion": IngestionConfig,
        "search": SearchConfig,
    }

    # Default to ``BaseConfig`` to avoid surprising crashes for unknown names.
    config_class = config_map.get(component, BaseConfig)
    return config_class()
