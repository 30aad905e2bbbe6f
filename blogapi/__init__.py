"""Blogging backend: accounts, posts, likes and comments over JSON REST."""

__version__ = "1.0.0"
