from fastapi import APIRouter, Request

from logging_config import get_logger
from schemas.chat import RoomDetailsResponse

logger = get_logger(__name__)

room_router = APIRouter(prefix="/room", tags=["room"])


@room_router.get("", response_model=RoomDetailsResponse)
async def get_room_details(request: Request):
    """
    Current room occupancy.

    Returns:
    - online_count: Number of joined members
    - nicknames: Nicknames of joined members
    - inactivity_timeout_seconds: Silence allowed before a member is kicked
    """
    room = request.app.state.room
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room details request from {client_host}: {room.member_count} online")
    return RoomDetailsResponse(
        online_count=room.member_count,
        nicknames=room.nicknames(),
        inactivity_timeout_seconds=room.kick_silent_seconds,
    )
