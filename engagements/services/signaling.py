"""
Meeting-room token allocation for video interviews.

The media signaling subsystem is external; the scheduler stores and returns
whatever token it hands out without interpreting it.
"""

import secrets
import time
from abc import ABC, abstractmethod

from engagements.core.config import settings


class RoomTokenAllocator(ABC):
    @abstractmethod
    def allocate_room_token(self) -> str:
        ...


class LocalRoomTokenAllocator(RoomTokenAllocator):
    """Generates unique room names of the form <prefix>-<epoch ms>-<random>."""

    def __init__(self, prefix: str = None):
        self.prefix = prefix or settings.MEETING_ROOM_PREFIX

    def allocate_room_token(self) -> str:
        return f"{self.prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3)}"
