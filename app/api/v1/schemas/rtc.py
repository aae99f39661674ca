from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.domain.rtc.token.token_models import MAX_SUBJECT_ID, Privilege, RtcRole, VerifyResult


class CreateTokenIn(BaseModel):
    # Validated by the token domain so a missing channel is E_INVALID_REQUEST
    channel_name: str | None = Field(default=None, description="Channel the token grants access to")
    subject_id: int | None = Field(
        default=None,
        ge=0,
        le=MAX_SUBJECT_ID,
        description="Participant id; 0 or omitted lets the RTC service assign one",
    )
    role: str | None = Field(
        default=None,
        description="publisher or subscriber; unknown values fall back to subscriber",
    )

    @field_validator("role", mode="before")
    @classmethod
    def non_string_role_is_unset(cls, v: Any) -> Any:
        # Malformed roles degrade to subscriber instead of failing validation
        return v if isinstance(v, str) else None


class CreateTokenOut(BaseModel):
    token: str
    app_id: str
    channel_name: str
    subject_id: int
    role: RtcRole
    expire_at: int = Field(description="Privilege expiry, unix seconds")


class VerifyTokenIn(BaseModel):
    token: str = Field(description="Token returned by create_token")
    privilege: Privilege = Field(
        default=Privilege.JOIN_CHANNEL,
        description="Privilege wire number: 1 join, 2 audio, 3 video, 4 data",
    )


class VerifyTokenOut(BaseModel):
    result: VerifyResult
