"""Postboard: blog-style REST backend with signup and owner-scoped post CRUD."""

__version__ = "1.0.0"
