import asyncio
import json
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from commands import Command, DisconnectCommand, JoinCommand, LeaveCommand, MessageCommand
from events import (
    CLOSE_GOING_AWAY,
    CLOSE_NORMAL,
    CLOSE_POLICY_VIOLATION,
    EVENT_JOIN,
    EVENT_KICK,
    EVENT_LEAVE,
    EVENT_RECEIVE_MESSAGE,
)
from logging_config import get_logger
from room import ChatRoom
from schemas.chat import ClientFrame, ServerFrame

logger = get_logger(__name__)


class _Close:
    def __init__(self, code: int, reason: str):
        self.code = code
        self.reason = reason


class ClientConnection:
    """One accepted websocket.

    ``emit`` and ``terminate`` only enqueue; ``pump`` is the single writer that
    drains the queue onto the socket, so frames keep their emission order.
    """

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or uuid.uuid4().hex
        self.closing = False
        self._outbox: asyncio.Queue = asyncio.Queue()

    def emit(self, event: str, data: Any):
        if self.closing:
            logger.debug(f"Dropping '{event}' for closing connection {self.connection_id}")
            return
        self._outbox.put_nowait(ServerFrame(event=event, data=data))
        if event == EVENT_KICK:
            self.terminate(CLOSE_POLICY_VIOLATION, f"Kicked: {data}")

    def terminate(self, code: int = CLOSE_GOING_AWAY, reason: str = ""):
        if self.closing:
            return
        self.closing = True
        self._outbox.put_nowait(_Close(code, reason))

    async def pump(self):
        while True:
            item = await self._outbox.get()
            if isinstance(item, _Close):
                try:
                    await self.websocket.close(code=item.code, reason=item.reason)
                    logger.debug(f"Closed connection {self.connection_id} ({item.code} {item.reason})")
                except Exception as e:
                    logger.debug(f"Error closing WebSocket {self.connection_id}: {e}")
                return
            try:
                await self.websocket.send_text(item.model_dump_json())
            except Exception as e:
                logger.debug(f"Error sending to connection {self.connection_id}: {e}")
                self.closing = True
                return


class ChatGateway:
    """Binds websocket connections to a ChatRoom."""

    def __init__(self, room: ChatRoom):
        self.room = room
        self.connections: Dict[str, ClientConnection] = {}
        self.accepting = True

    def decode(self, connection: ClientConnection, raw: str) -> Optional[Command]:
        """Translate one inbound text frame into a room command, or None if it is malformed."""
        try:
            frame = ClientFrame.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Malformed frame from connection {connection.connection_id}: {e}")
            return None

        connection_id = connection.connection_id
        if frame.event == EVENT_JOIN:
            return JoinCommand(connection_id=connection_id, nickname=frame.payload_text(), connection=connection)
        if frame.event == EVENT_RECEIVE_MESSAGE:
            return MessageCommand(connection_id=connection_id, text=frame.payload_text(), connection=connection)
        if frame.event == EVENT_LEAVE:
            return LeaveCommand(connection_id=connection_id)

        logger.warning(f"Unknown event '{frame.event}' from connection {connection_id}")
        return None

    def handle_frame(self, connection: ClientConnection, raw: str):
        command = self.decode(connection, raw)
        if command is None:
            return
        was_member = self.room.has_member(connection.connection_id)
        self.room.dispatch(command)
        if isinstance(command, LeaveCommand) and was_member:
            connection.terminate(CLOSE_NORMAL, "Left the chat")

    async def serve(self, websocket: WebSocket):
        """Run one websocket connection until it disconnects or is closed by the room."""
        if not self.accepting:
            logger.info("WebSocket connection rejected: server shutting down")
            await websocket.close(code=CLOSE_GOING_AWAY, reason="Server shutting down")
            return

        await websocket.accept()
        connection = ClientConnection(websocket)
        self.connections[connection.connection_id] = connection
        writer = asyncio.create_task(connection.pump())
        logger.info(f"Connection {connection.connection_id}: connected")

        try:
            while not connection.closing:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", CLOSE_NORMAL), message.get("reason"))
                raw = message.get("text")
                if raw is None:
                    logger.warning(f"Malformed frame from connection {connection.connection_id}: not a text frame")
                    continue
                self.handle_frame(connection, raw)
        except WebSocketDisconnect:
            logger.info(f"Connection {connection.connection_id}: disconnected")
        except Exception as e:
            logger.error(f"Connection {connection.connection_id}: error {e}", exc_info=True)
        finally:
            self.room.dispatch(DisconnectCommand(connection_id=connection.connection_id))
            self.connections.pop(connection.connection_id, None)
            connection.terminate(CLOSE_NORMAL, "")
            await writer

    def stop(self):
        self.room.stop()
        self.accepting = False
        for connection in list(self.connections.values()):
            connection.terminate(CLOSE_GOING_AWAY, "Server shutting down")
        logger.info("Chat gateway stopped")
