"""Async client for the blog API."""

from .client import BlogClient, create_auth_backend, create_blog_client

__all__ = ["BlogClient", "create_auth_backend", "create_blog_client"]
