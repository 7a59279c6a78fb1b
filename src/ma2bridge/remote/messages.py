"""grandMA2 Web Remote wire messages.

Outbound requests are plain dicts serialized to JSON by the transport.
Inbound frames are parsed into InboundMessage; anything that is not a
JSON object is logged and discarded.
"""

import hashlib
import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

GETDATA_CLASSES = "set,clear,solo,high"

# responseSubType values of "playbacks" responses
SUBTYPE_FADER_LEDS = 2
SUBTYPE_BUTTON_LEDS = 3

# playbacks_userInput "type" values
INPUT_TYPE_BUTTON = 0
INPUT_TYPE_FADER = 1


def hash_password(password: str) -> str:
    """MD5 hex digest of the plaintext password, as the Web Remote login expects."""
    return hashlib.md5(password.encode("utf-8")).hexdigest()


def session_echo(session: int) -> dict[str, Any]:
    """Keep-alive / session announcement."""
    return {"session": session}


def login_request(username: str, password: str, session: int, max_requests: int) -> dict[str, Any]:
    return {
        "requestType": "login",
        "username": username,
        "password": hash_password(password),
        "session": session,
        "maxRequests": max_requests,
    }


def data_request(session: int, max_requests: int) -> dict[str, Any]:
    return {
        "requestType": "getdata",
        "data": GETDATA_CLASSES,
        "session": session,
        "maxRequests": max_requests,
    }


def button_press_request(exec_index: int, page_index: int, session: int) -> dict[str, Any]:
    return {
        "requestType": "playbacks_userInput",
        "cmdline": "",
        "execIndex": exec_index,
        "pageIndex": page_index,
        "buttonId": 0,
        "pressed": True,
        "released": False,
        "type": INPUT_TYPE_BUTTON,
        "session": session,
        "maxRequests": 0,
    }


def fader_request(exec_index: int, page_index: int, fader_value: float, session: int) -> dict[str, Any]:
    return {
        "requestType": "playbacks_userInput",
        "execIndex": exec_index,
        "pageIndex": page_index,
        "faderValue": fader_value,
        "type": INPUT_TYPE_FADER,
        "session": session,
        "maxRequests": 0,
    }


class PlaybackItem(BaseModel):
    """One executor block of a playbacks response."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    is_run: bool = Field(default=False, alias="isRun")


class ItemGroup(BaseModel):
    """Group of executor rows in a playbacks response."""

    model_config = ConfigDict(extra="allow")

    items: list[list[PlaybackItem]] = Field(default_factory=list)


class InboundMessage(BaseModel):
    """Frame received from the console. Every field is optional."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: str | None = None
    force_login: bool | None = Field(default=None, alias="forceLogin")
    response_type: str | None = Field(default=None, alias="responseType")
    response_sub_type: int | None = Field(default=None, alias="responseSubType")
    result: bool | None = None
    connections_limit_reached: Any = None
    session: int | None = None
    text: str | None = None
    item_groups: list[ItemGroup] = Field(default_factory=list, alias="itemGroups")

    @property
    def is_server_ready(self) -> bool:
        return self.status == "server ready"

    @property
    def is_login_response(self) -> bool:
        return self.response_type == "login"

    @property
    def is_playbacks(self) -> bool:
        return self.response_type == "playbacks"

    @property
    def connection_limit_reached(self) -> bool:
        # The console signals this by the key's presence, whatever its value.
        return "connections_limit_reached" in self.model_fields_set

    def playback_items(self) -> list[PlaybackItem]:
        """All executor items in display order, flattened across groups and rows."""
        return [item for group in self.item_groups for row in group.items for item in row]


def parse_inbound(data: str | bytes) -> InboundMessage | None:
    """
    Parse a raw console frame.

    Returns:
        The parsed message, or None if the frame was discarded
    """
    if not isinstance(data, str):
        logger.warning(f"Ignoring non-text frame ({len(data)} bytes)")
        return None

    try:
        obj = json.loads(data)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse console frame: {e}")
        return None

    if not isinstance(obj, dict):
        logger.warning(f"Invalid console frame format: {data[:200]}")
        return None

    try:
        return InboundMessage.model_validate(obj)
    except ValidationError as e:
        logger.warning(f"Invalid console frame content, skipping: {e.error_count()} error(s)")
        logger.debug(f"Rejected frame: {data[:500]}")
        return None
