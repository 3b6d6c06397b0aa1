"""Inbound payload contracts and validation."""
