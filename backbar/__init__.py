"""Backbar inventory engine."""
