import json
from typing import Any, List, Literal

from pydantic import BaseModel


class ClientFrame(BaseModel):
    event: str
    data: Any = None

    def payload_text(self) -> str:
        """Payload coerced to a string; a missing payload becomes ''."""
        if self.data is None:
            return ""
        if isinstance(self.data, str):
            return self.data
        return json.dumps(self.data)


class ServerFrame(BaseModel):
    event: str
    data: Any = None


class JoinSuccess(BaseModel):
    nickname: str


class ChatMessage(BaseModel):
    nickname: str
    text: str
    timestamp: int
    isAnnouncement: Literal[False] = False


class Announcement(BaseModel):
    text: str
    timestamp: int
    isAnnouncement: Literal[True] = True


class RoomDetailsResponse(BaseModel):
    online_count: int
    nicknames: List[str]
    inactivity_timeout_seconds: float
