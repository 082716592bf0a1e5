# chatclient/common/protocol.py
from enum import Enum
from typing import Any, Literal, NamedTuple, Optional

from pydantic import BaseModel


class Auth(BaseModel):
    type: Literal["auth"] = "auth"
    password: str


class AuthResult(BaseModel):
    type: Literal["auth_result"] = "auth_result"
    success: bool
    error: Optional[str] = None


class Chat(BaseModel):
    type: Literal["chat"] = "chat"
    text: str
    sender_ip: Optional[str] = None   # set by the server on relayed messages


# ============ Inbound shape matching ============

ANY = object()


def matches(message: dict[str, Any], pattern: dict[str, Any]) -> bool:
    """
    True when every key of pattern is present in message and, unless the
    pattern value is ANY, holds an equal value of the same JSON type
    (so success=1 does not pass for success=true).
    """
    for key, expected in pattern.items():
        if key not in message:
            return False
        if expected is ANY:
            continue
        value = message[key]
        if type(value) is not type(expected) or value != expected:
            return False
    return True


class AuthStatus(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNEXPECTED = "unexpected"


class AuthReply(NamedTuple):
    status: AuthStatus
    error: Optional[str] = None


def classify_auth_reply(message: dict[str, Any]) -> AuthReply:
    if matches(message, {"type": "auth_result", "success": True}):
        return AuthReply(AuthStatus.ACCEPTED)
    if matches(message, {"type": "auth_result", "success": False, "error": ANY}):
        return AuthReply(AuthStatus.REJECTED, str(message["error"]))
    return AuthReply(AuthStatus.UNEXPECTED)


# Evaluated top-down; the second rule keeps older servers that omit "type".
CHAT_SHAPES = (
    {"type": "chat", "text": ANY, "sender_ip": ANY},
    {"text": ANY, "sender_ip": ANY},
)


def describe_inbound(message: dict[str, Any]) -> Optional[str]:
    """Return the display line for a relayed chat message, None to ignore it."""
    for shape in CHAT_SHAPES:
        if matches(message, shape):
            return f"msg from {message['sender_ip']}: {message['text']}"
    return None
