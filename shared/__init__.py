"""Shared models, logging, configuration and metrics."""
