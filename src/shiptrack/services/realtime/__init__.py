"""Realtime broadcast of shipment updates."""

from .hub import BroadcastHub, Observer, Subscriber

__all__ = ["BroadcastHub", "Observer", "Subscriber"]
