# Inbound events (client -> server)
EVENT_JOIN = "join"
EVENT_LEAVE = "leave"
EVENT_RECEIVE_MESSAGE = "message"

# Outbound events (server -> client)
EVENT_JOIN_SUCCESS = "joinSuccess"
EVENT_JOIN_FAIL = "joinFail"
EVENT_EMIT_MESSAGE = "message"
EVENT_KICK = "kick"

# Unicast reasons
NICKNAME_TAKEN = "nickname taken"
INVALID_NICKNAME = "invalid nickname"
KICK_INACTIVITY = "inactivity"
KICK_UNAUTHORIZED = "unauthorized"

# Broadcast announcements, formatted with the member's nickname
BROADCAST_JOINED_MESSAGE = "{nickname} joined the chat"
BROADCAST_DISCONNECTED_MESSAGE = "{nickname} left the chat, connection lost"
BROADCAST_KICK_MESSAGE = "{nickname} was disconnected due to inactivity"

# Websocket close codes used by the gateway
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_POLICY_VIOLATION = 1008
