"""
REST API for the App Center data source

Exposes the connectivity check and the query surface over HTTP.
"""

from .app import create_app

__all__ = ["create_app"]
