"""Daemon-facing services: REST client and event feed listener."""

from __future__ import annotations

from .api import SyncthingClient
from .events import EventListener

__all__ = ["EventListener", "SyncthingClient"]
