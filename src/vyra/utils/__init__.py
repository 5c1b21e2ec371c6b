"""Shared utilities for vyra (exceptions)."""
