"""Shared helpers: environment lookup and structured logging."""
