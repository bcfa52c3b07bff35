"""
Real-time delivery channels addressed by user id.

The core only ever calls publish(user_id, payload) and never learns whether
anyone was listening. NullChannel is the default when no transport is wired.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class RealtimeChannel(ABC):
    """Fire-and-forget publish interface."""

    @abstractmethod
    async def publish(self, user_id: UUID, payload: Dict[str, Any]) -> None:
        ...

    async def close_all(self) -> None:
        return None


class NullChannel(RealtimeChannel):
    """Drops every message; used until a real transport is installed."""

    async def publish(self, user_id: UUID, payload: Dict[str, Any]) -> None:
        logger.debug("No real-time transport; dropping message for user %s", user_id)


class ConnectionManager(RealtimeChannel):
    """In-process WebSocket fan-out keyed by user id."""

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: UUID) -> None:
        """Accept and register a WebSocket for a user."""
        await websocket.accept()
        key = str(user_id)
        self.active_connections.setdefault(key, []).append(websocket)
        logger.info(
            "Connection added for user %s. Total connections: %d",
            key,
            len(self.active_connections[key]),
        )

    async def disconnect(self, websocket: WebSocket, user_id: UUID) -> None:
        key = str(user_id)
        if key not in self.active_connections:
            return
        try:
            self.active_connections[key].remove(websocket)
            logger.info("Connection removed for user %s", key)
        except ValueError:
            logger.warning("Connection not found for user %s", key)
        if not self.active_connections[key]:
            del self.active_connections[key]

    async def publish(self, user_id: UUID, payload: Dict[str, Any]) -> None:
        """Send payload to every socket of the user; dead sockets are dropped."""
        key = str(user_id)
        connections = list(self.active_connections.get(key, []))
        if not connections:
            logger.debug("No live connection for user %s", key)
            return

        disconnected = []
        for connection in connections:
            try:
                await connection.send_json(payload)
            except Exception as exc:
                logger.error("Error sending message to user %s: %s", key, exc)
                disconnected.append(connection)

        for connection in disconnected:
            await self.disconnect(connection, user_id)

    async def close_all(self) -> None:
        for key in list(self.active_connections.keys()):
            for connection in self.active_connections[key]:
                try:
                    await connection.close(code=1000)
                except Exception as exc:
                    logger.error("Error closing connection: %s", exc)
        self.active_connections.clear()
