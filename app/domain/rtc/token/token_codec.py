"""Canonical encoding and envelope format for RTC privilege tokens.

All integers are little-endian.

    pack_string(s) = uint16(len(utf8(s))) || utf8(s)

    canonical      = pack_string(app_id)
                  || pack_string(channel_name)
                  || uint32(subject_id)
                  || uint16(n_privileges)
                  || (uint16(privilege) || uint32(expire_at))  for each privilege, ascending

    signature      = HMAC-SHA256(secret, canonical)
    envelope       = uint16(len(signature)) || signature || canonical
    token          = "006" || base64(envelope)

The verifier rebuilds `canonical` from the envelope bytes, so issuance and
verification always sign the same byte sequence.
"""

import base64
import binascii
import hashlib
import hmac
import struct

from .token_models import TOKEN_VERSION, Privilege, PrivilegeToken

_MAX_U16 = 0xFFFF


class TokenFormatError(ValueError):
    """Raised when a token cannot be encoded or decoded."""


def pack_uint16(value: int) -> bytes:
    return struct.pack("<H", value)


def pack_uint32(value: int) -> bytes:
    return struct.pack("<I", value)


def pack_bytes(value: bytes) -> bytes:
    if len(value) > _MAX_U16:
        raise TokenFormatError(f"field too long: {len(value)} bytes")
    return pack_uint16(len(value)) + value


def pack_string(value: str) -> bytes:
    return pack_bytes(value.encode("utf-8"))


def pack_privileges(privileges: dict[Privilege, int]) -> bytes:
    parts = [pack_uint16(len(privileges))]
    for privilege in sorted(privileges):
        parts.append(pack_uint16(int(privilege)))
        parts.append(pack_uint32(privileges[privilege]))
    return b"".join(parts)


def canonical_bytes(
    app_id: str,
    channel_name: str,
    subject_id: int,
    privileges: dict[Privilege, int],
) -> bytes:
    try:
        return (
            pack_string(app_id)
            + pack_string(channel_name)
            + pack_uint32(subject_id)
            + pack_privileges(privileges)
        )
    except struct.error as exc:
        raise TokenFormatError(str(exc)) from exc


def sign(secret: str, message: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


class _Reader:
    def __init__(self, buf: bytes):
        self._buf = buf
        self._pos = 0

    def _take(self, fmt: str) -> int:
        try:
            (value,) = struct.unpack_from(fmt, self._buf, self._pos)
        except struct.error as exc:
            raise TokenFormatError("token truncated") from exc
        self._pos += struct.calcsize(fmt)
        return value

    def uint16(self) -> int:
        return self._take("<H")

    def uint32(self) -> int:
        return self._take("<I")

    def raw(self) -> bytes:
        size = self.uint16()
        end = self._pos + size
        if end > len(self._buf):
            raise TokenFormatError("token truncated")
        value = self._buf[self._pos : end]
        self._pos = end
        return value

    def string(self) -> str:
        try:
            return self.raw().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TokenFormatError("invalid utf-8 in token") from exc

    def rest(self) -> bytes:
        return self._buf[self._pos :]

    def at_end(self) -> bool:
        return self._pos == len(self._buf)


def encode_token(token: PrivilegeToken) -> str:
    message = canonical_bytes(
        token.app_id, token.channel_name, token.subject_id, token.privileges
    )
    envelope = pack_bytes(token.signature) + message
    return TOKEN_VERSION + base64.b64encode(envelope).decode("ascii")


def decode_token(token: str) -> tuple[PrivilegeToken, bytes]:
    """Parse a token string.

    Returns:
        The decoded token and the canonical bytes its signature covers.

    Raises:
        TokenFormatError: On unknown version or malformed envelope.
    """
    if not isinstance(token, str) or not token.startswith(TOKEN_VERSION):
        raise TokenFormatError("unknown token version")

    try:
        envelope = base64.b64decode(token[len(TOKEN_VERSION) :], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TokenFormatError("token is not valid base64") from exc

    reader = _Reader(envelope)
    signature = reader.raw()
    message = reader.rest()

    reader = _Reader(message)
    app_id = reader.string()
    channel_name = reader.string()
    subject_id = reader.uint32()

    privileges: dict[Privilege, int] = {}
    for _ in range(reader.uint16()):
        kind = reader.uint16()
        expire_at = reader.uint32()
        try:
            privileges[Privilege(kind)] = expire_at
        except ValueError as exc:
            raise TokenFormatError(f"unknown privilege kind: {kind}") from exc

    if not reader.at_end():
        raise TokenFormatError("trailing bytes in token")

    decoded = PrivilegeToken(
        app_id=app_id,
        channel_name=channel_name,
        subject_id=subject_id,
        privileges=privileges,
        signature=signature,
    )
    return decoded, message
