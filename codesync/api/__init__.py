# codesync/api/__init__.py
"""
codesync REST API.

Webhook receiver, sync triggers and progress polling over HTTP.
"""

from codesync.api.app import create_app

__all__ = ["create_app"]
