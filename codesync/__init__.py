# codesync/__init__.py
"""
codesync - keep a vector index in step with a code repository.

Only changed files are re-chunked and re-embedded. Change detection is a
Merkle tree diff against the last successfully synced snapshot.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
