"""Shared helpers: YAML configuration for the CLI and the HTTP server (config.py)."""
