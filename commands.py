"""Inbound commands accepted by the chat room.

The gateway translates every transport event into exactly one of these and
hands it to ``ChatRoom.dispatch``.
"""
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class JoinCommand:
    connection_id: str
    nickname: str
    connection: Any


@dataclass(frozen=True)
class MessageCommand:
    connection_id: str
    text: str
    connection: Any


@dataclass(frozen=True)
class LeaveCommand:
    connection_id: str


@dataclass(frozen=True)
class DisconnectCommand:
    connection_id: str


Command = Union[JoinCommand, MessageCommand, LeaveCommand, DisconnectCommand]
