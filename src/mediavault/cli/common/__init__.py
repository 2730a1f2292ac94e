"""Shared building blocks for CLI commands."""
