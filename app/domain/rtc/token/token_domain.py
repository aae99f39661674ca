"""RTC token issuing and verification.

`issue_token` and `verify_token` are pure: every input, including the clock
and the signing secret, is passed in. `TokenService` binds them to the
application configuration for the API layer.
"""

import hmac
import time
from typing import Any

from loguru import logger

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .token_codec import TokenFormatError, canonical_bytes, decode_token, encode_token, sign
from .token_models import (
    DEFAULT_TOKEN_TTL_SECONDS,
    MAX_SUBJECT_ID,
    IssuedToken,
    Privilege,
    PrivilegeToken,
    RtcRole,
    VerifyResult,
)


def issue_token(
    channel_name: str | None,
    *,
    app_id: str | None,
    secret: str | None,
    subject_id: int | None = 0,
    role: Any = RtcRole.SUBSCRIBER,
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    now: int | None = None,
) -> IssuedToken:
    """Build and sign a channel-scoped token.

    Args:
        channel_name: Channel the token grants access to
        app_id: Issuing tenant identifier
        secret: Signing secret (app certificate)
        subject_id: Participant id, 0 lets the RTC service assign one on join
        role: "publisher" grants every privilege, anything else only JOIN_CHANNEL
        ttl_seconds: Validity window from `now`
        now: Unix seconds, defaults to the current time

    Returns:
        IssuedToken with the opaque token string and its expiry

    Raises:
        AppError: E_INVALID_REQUEST on bad input, E_SIGNING_FAILURE when
            the app id or secret is unavailable
    """
    if not channel_name:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="Channel name is required",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

    if subject_id is None:
        subject_id = 0
    if isinstance(subject_id, bool) or not isinstance(subject_id, int) or not (
        0 <= subject_id <= MAX_SUBJECT_ID
    ):
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg=f"subject_id must be an integer in [0, {MAX_SUBJECT_ID}]",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="ttl_seconds must be a positive integer",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

    if not app_id or not secret:
        raise AppError(
            errcode=AppErrorCode.E_SIGNING_FAILURE,
            errmesg="RTC app id or certificate is not configured",
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        )

    resolved_role = role if isinstance(role, RtcRole) else RtcRole.parse(role)
    issued_at = int(time.time()) if now is None else int(now)
    expire_at = issued_at + ttl_seconds
    privileges = {privilege: expire_at for privilege in resolved_role.privileges()}

    try:
        message = canonical_bytes(app_id, channel_name, subject_id, privileges)
        token = encode_token(
            PrivilegeToken(
                app_id=app_id,
                channel_name=channel_name,
                subject_id=subject_id,
                privileges=privileges,
                signature=sign(secret, message),
            )
        )
    except TokenFormatError as exc:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg=f"Cannot encode token: {exc}",
            status_code=HttpStatusCode.BAD_REQUEST,
        ) from exc

    return IssuedToken(
        token=token,
        app_id=app_id,
        channel_name=channel_name,
        subject_id=subject_id,
        role=resolved_role,
        expire_at=expire_at,
    )


def verify_token(
    token: str,
    required_privilege: Privilege,
    secret: str,
    now: int | None = None,
) -> VerifyResult:
    """Check a token's signature, then the expiry of one privilege.

    A privilege the token does not carry counts as expired.
    """
    try:
        decoded, message = decode_token(token)
    except TokenFormatError as exc:
        logger.debug("Rejecting malformed RTC token: {}", exc)
        return VerifyResult.BAD_SIGNATURE

    expected = sign(secret, message)
    if not hmac.compare_digest(expected, decoded.signature):
        return VerifyResult.BAD_SIGNATURE

    current = int(time.time()) if now is None else int(now)
    if decoded.privileges.get(required_privilege, 0) <= current:
        return VerifyResult.EXPIRED

    return VerifyResult.OK


class TokenService:
    """Issues and verifies RTC tokens using the configured app id and certificate."""

    def __init__(self, cfg: AppEnvironConfig | None = None) -> None:
        self._cfg = cfg or get_app_environ_config()
        logger.info("TokenService initialized (app_id configured={})", bool(self._cfg.RTC_APP_ID))

    @property
    def app_id(self) -> str | None:
        return self._cfg.RTC_APP_ID

    def create_token(
        self,
        channel_name: str | None,
        subject_id: int | None = None,
        role: Any = None,
    ) -> IssuedToken:
        """Issue a token with the configured TTL."""
        issued = issue_token(
            channel_name,
            app_id=self._cfg.RTC_APP_ID,
            secret=self._cfg.RTC_APP_CERTIFICATE,
            subject_id=subject_id,
            role=role,
            ttl_seconds=self._cfg.RTC_TOKEN_TTL_SECONDS,
        )
        logger.info(
            "Issued RTC token: channel={} subject_id={} role={} expire_at={}",
            issued.channel_name,
            issued.subject_id,
            issued.role,
            issued.expire_at,
        )
        return issued

    def verify(self, token: str, required_privilege: Privilege = Privilege.JOIN_CHANNEL) -> VerifyResult:
        secret = self._cfg.RTC_APP_CERTIFICATE
        if not secret:
            raise AppError(
                errcode=AppErrorCode.E_SIGNING_FAILURE,
                errmesg="RTC app certificate is not configured",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )
        return verify_token(token, required_privilege, secret)
