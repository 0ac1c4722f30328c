"""Route group exports."""

from . import drivers, health, public, realtime, shipments

__all__ = ["drivers", "health", "public", "realtime", "shipments"]
