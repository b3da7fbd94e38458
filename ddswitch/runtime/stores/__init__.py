from __future__ import annotations

from .base import EventLogStore
from .fs import FileEventLogStore

__all__ = [
    "EventLogStore",
    "FileEventLogStore",
]
