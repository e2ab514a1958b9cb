"""Tests for the local retrieval components.

Unit tests cover chunking, vocabulary building, encoding, similarity, ranking,
and the in-memory store. The ``integration`` package drives the whole pipeline
through ``DocumentQAService`` and the command line interface.
"""
