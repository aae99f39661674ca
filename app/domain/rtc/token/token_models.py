"""RTC token domain models."""

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TOKEN_VERSION = "006"
DEFAULT_TOKEN_TTL_SECONDS = 3600
MAX_SUBJECT_ID = 2**32 - 1


class Privilege(IntEnum):
    """Privilege kinds. The integer value is the wire number in the canonical encoding."""

    JOIN_CHANNEL = 1
    PUBLISH_AUDIO_STREAM = 2
    PUBLISH_VIDEO_STREAM = 3
    PUBLISH_DATA_STREAM = 4


class RtcRole(str, Enum):
    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> "RtcRole":
        """Resolve a role name. Only the exact string "publisher" maps to PUBLISHER."""
        if isinstance(value, str) and value == cls.PUBLISHER.value:
            return cls.PUBLISHER
        return cls.SUBSCRIBER

    def privileges(self) -> tuple[Privilege, ...]:
        if self is RtcRole.PUBLISHER:
            return tuple(Privilege)
        return (Privilege.JOIN_CHANNEL,)


class VerifyResult(str, Enum):
    OK = "ok"
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"

    def __str__(self) -> str:
        return self.value


class PrivilegeToken(BaseModel):
    """Decoded cleartext of a token. Never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    app_id: str
    channel_name: str
    subject_id: int = Field(ge=0, le=MAX_SUBJECT_ID)
    privileges: dict[Privilege, int]
    signature: bytes = b""


class IssuedToken(BaseModel):
    """Result of issuing a token."""

    token: str
    app_id: str
    channel_name: str
    subject_id: int
    role: RtcRole
    expire_at: int
