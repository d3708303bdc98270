"""Core configuration, errors and helpers."""
