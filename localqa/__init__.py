"""Local document question-answering retrieval.

Subpackages:
- ``localqa.common``: configuration, logging, and metrics.
- ``localqa.store``: chunk store interface and the in-memory backend.
- ``localqa.embedding``: vocabulary statistics and the hashing vector encoder.
- ``localqa.ingestion``: chunking, text extraction, and the ingestion pipeline.
- ``localqa.search``: similarity search, hybrid ranking, and suggestions.

Usage:
- ``DocumentQAService`` wires everything together for applications and the CLI.
- Individual components can be used on their own; none of them reach into
  storage directly.
"""

__version__ = "0.1.0"
