import enum
import json
from typing import Literal

from pydantic import BaseModel, ConfigDict

ERROR_INVALID_JSON = "Invalid JSON format"
ERROR_JOIN_FIELDS = "Join message requires username and color"
ERROR_NOT_JOINED = 'You must send a "join" message first.'

class EnvelopeType(str, enum.Enum):
    JOIN = "join"
    LEAVE = "leave"
    CHANGE = "change"
    MESSAGE = "message"
    REQUEST_USERS = "request_users"
    USER_LIST = "user_list"
    ERROR = "error"

class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    color: str

class LeaveEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["leave"] = "leave"
    username: str
    color: str
    timestamp: str

class UserListEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["user_list"] = "user_list"
    users: tuple[Identity, ...] = ()

class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    message: str

def encode(envelope: BaseModel | dict) -> str:
    """Serialize an outbound envelope to a JSON text frame."""
    if isinstance(envelope, BaseModel):
        return envelope.model_dump_json()
    return json.dumps(envelope)
