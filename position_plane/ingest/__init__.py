"""Inbound push message handling."""

from position_plane.ingest.message_handler import OpenTradesMessageHandler

__all__ = ["OpenTradesMessageHandler"]
