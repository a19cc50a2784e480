"""Chat room state: member registry, nickname uniqueness and inactivity kicks.

Every operation runs synchronously on the event loop thread, so the loop is
the single serialization point for transport events and timer firings alike.
Emissions go through ``Connection.emit`` which must not block; the gateway
queues them for delivery.
"""
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from commands import Command, DisconnectCommand, JoinCommand, LeaveCommand, MessageCommand
from constants import KICK_SILENT_SECONDS
from events import (
    BROADCAST_DISCONNECTED_MESSAGE,
    BROADCAST_JOINED_MESSAGE,
    BROADCAST_KICK_MESSAGE,
    CLOSE_GOING_AWAY,
    EVENT_EMIT_MESSAGE,
    EVENT_JOIN_FAIL,
    EVENT_JOIN_SUCCESS,
    EVENT_KICK,
    INVALID_NICKNAME,
    KICK_INACTIVITY,
    KICK_UNAUTHORIZED,
    NICKNAME_TAKEN,
)
from logging_config import get_logger
from schemas.chat import Announcement, ChatMessage, JoinSuccess
from timers import InactivityTimer

logger = get_logger(__name__)


class Connection(Protocol):
    def emit(self, event: str, data: Any) -> None:
        ...

    def terminate(self, code: int = ..., reason: str = ...) -> None:
        ...


class Member:
    def __init__(self, connection_id: str, nickname: str, connection: Connection, timer: InactivityTimer):
        self.connection_id = connection_id
        self.nickname = nickname
        self.connection = connection
        self.timer = timer

    def __repr__(self):
        return f"Member(connection_id={self.connection_id!r}, nickname={self.nickname!r})"


def now_ms() -> int:
    return int(time.time() * 1000)


class ChatRoom:
    def __init__(
        self,
        kick_silent_seconds: float = KICK_SILENT_SECONDS,
        nickname_policy: Optional[Callable[[str], bool]] = None,
    ):
        self.kick_silent_seconds = kick_silent_seconds
        self.nickname_policy = nickname_policy
        self.members: Dict[str, Member] = {}
        self.stopped = False
        logger.info(f"Chat room created, inactivity timeout {kick_silent_seconds}s")

    @property
    def member_count(self) -> int:
        return len(self.members)

    def nicknames(self) -> List[str]:
        return [member.nickname for member in self.members.values()]

    def has_member(self, connection_id: str) -> bool:
        return connection_id in self.members

    def dispatch(self, command: Command):
        """Route one inbound command to the matching operation."""
        if self.stopped:
            logger.debug(f"Room stopped, ignoring {type(command).__name__} from {command.connection_id}")
            return
        if isinstance(command, JoinCommand):
            self.join(command.nickname, command.connection_id, command.connection)
        elif isinstance(command, MessageCommand):
            self.message(command.text, command.connection_id, command.connection)
        elif isinstance(command, (LeaveCommand, DisconnectCommand)):
            self.leave(command.connection_id)
        else:
            raise TypeError(f"Unknown room command: {command!r}")

    def join(self, nickname: str, connection_id: str, connection: Connection) -> bool:
        if self.stopped:
            logger.debug(f"Room stopped, ignoring join from {connection_id}")
            return False

        if self.has_nickname(nickname) or connection_id in self.members:
            logger.info(f"Join rejected for {connection_id}: nickname '{nickname}' taken or already joined")
            connection.emit(EVENT_JOIN_FAIL, NICKNAME_TAKEN)
            return False

        if self.nickname_policy is not None and not self.nickname_policy(nickname):
            logger.info(f"Join rejected for {connection_id}: nickname '{nickname}' refused by policy")
            connection.emit(EVENT_JOIN_FAIL, INVALID_NICKNAME)
            return False

        timer = InactivityTimer(self.kick_silent_seconds, lambda fired: self._on_timeout(connection_id, fired))
        self.members[connection_id] = Member(connection_id, nickname, connection, timer)
        timer.start()
        logger.info(f"User '{nickname}' joined as {connection_id} ({self.member_count} online)")

        connection.emit(EVENT_JOIN_SUCCESS, JoinSuccess(nickname=nickname).model_dump())
        self.broadcast(EVENT_EMIT_MESSAGE, self.announcement(BROADCAST_JOINED_MESSAGE.format(nickname=nickname)))
        return True

    def message(self, text: str, connection_id: str, connection: Connection) -> bool:
        """Relay chat text from a member.

        Only non-empty text counts as activity; an empty message neither
        resets the inactivity timer nor produces a broadcast.
        """
        if self.stopped:
            return False

        member = self.members.get(connection_id)
        if member is None:
            logger.warning(f"Message from unjoined connection {connection_id}, kicking")
            connection.emit(EVENT_KICK, KICK_UNAUTHORIZED)
            return False

        if not text:
            logger.debug(f"Empty message from '{member.nickname}' ignored")
            return False

        member.timer.reset()
        chat_message = ChatMessage(nickname=member.nickname, text=text, timestamp=now_ms())
        self.broadcast(EVENT_EMIT_MESSAGE, chat_message.model_dump())
        return True

    def leave(self, connection_id: str) -> bool:
        member = self._remove(connection_id)
        if member is None:
            return False
        logger.info(f"User '{member.nickname}' left ({self.member_count} online)")
        self.broadcast(
            EVENT_EMIT_MESSAGE,
            self.announcement(BROADCAST_DISCONNECTED_MESSAGE.format(nickname=member.nickname)),
        )
        return True

    def kick(self, connection_id: str) -> bool:
        member = self.members.get(connection_id)
        if member is None:
            return False
        logger.info(f"Kicking '{member.nickname}' ({connection_id}) for inactivity")
        self.broadcast(
            EVENT_EMIT_MESSAGE,
            self.announcement(BROADCAST_KICK_MESSAGE.format(nickname=member.nickname)),
        )
        member.connection.emit(EVENT_KICK, KICK_INACTIVITY)
        self._remove(connection_id)
        return True

    def stop(self):
        """Tear the room down without announcing anything."""
        if self.stopped:
            return
        self.stopped = True
        count = self.member_count
        for member in list(self.members.values()):
            member.timer.cancel()
            try:
                member.connection.terminate(CLOSE_GOING_AWAY, "Server shutting down")
            except Exception as e:
                logger.error(f"Error terminating connection {member.connection_id}: {e}", exc_info=True)
        self.members.clear()
        logger.info(f"Chat room stopped, {count} members disconnected")

    def broadcast(self, event: str, data: Any):
        logger.debug(f"Broadcast '{event}' to {self.member_count} members: {data}")
        for member in list(self.members.values()):
            member.connection.emit(event, data)

    def has_nickname(self, nickname: str) -> bool:
        return any(member.nickname == nickname for member in self.members.values())

    @staticmethod
    def announcement(text: str) -> dict:
        return Announcement(text=text, timestamp=now_ms()).model_dump()

    def _on_timeout(self, connection_id: str, fired: InactivityTimer):
        if self.stopped:
            return
        member = self.members.get(connection_id)
        if member is None or member.timer is not fired:
            logger.debug(f"Stale inactivity timer for {connection_id} ignored")
            return
        self.kick(connection_id)

    def _remove(self, connection_id: str) -> Optional[Member]:
        member = self.members.pop(connection_id, None)
        if member is not None:
            member.timer.cancel()
        return member
