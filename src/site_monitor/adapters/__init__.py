"""Adapters for external capabilities."""
