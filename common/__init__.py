"""Shared helpers: logging setup, secrets and API auth."""
