"""Shared utilities for MediaVault: errors, logging helpers and constants."""
