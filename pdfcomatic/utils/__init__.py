"""Shared helpers: errors, logging, terminal output, and signal handling."""
