from __future__ import annotations

import hashlib
import hmac
import ipaddress
import secrets
import struct
from dataclasses import dataclass, field
from enum import IntEnum

from radclient.core import attrtypes as at

# header: CODE(1), ID(1), LEN(2), AUTHENTICATOR(16) => total 20 bytes
_HDR_FMT = "!BBH16s"
_HDR_SIZE = struct.calcsize(_HDR_FMT)
_ATTR_HDR_SIZE = 2
_INT_FMT = "!I"

AUTHENTICATOR_SIZE = 16
MAX_PACKET_SIZE = 4096
MAX_ATTR_VALUE_SIZE = 253
MAX_PASSWORD_SIZE = 128


class EncodeError(Exception):
    pass


class DecodeError(Exception):
    pass


class Code(IntEnum):
    ACCESS_REQUEST = 1
    ACCESS_ACCEPT = 2
    ACCESS_REJECT = 3
    ACCOUNTING_REQUEST = 4
    ACCOUNTING_RESPONSE = 5
    ACCESS_CHALLENGE = 11
    STATUS_SERVER = 12


# requests whose authenticator is random rather than derived from the secret
_RANDOM_AUTH_CODES = frozenset({Code.ACCESS_REQUEST, Code.STATUS_SERVER})


def _digest(code: int, identifier: int, length: int, authenticator: bytes, body: bytes, secret: bytes) -> bytes:
    header = struct.pack(_HDR_FMT, code, identifier, length, authenticator)
    return hashlib.md5(header + body + secret).digest()


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode() if isinstance(value, str) else bytes(value)


def _xor_chain(data: bytes, secret: bytes, authenticator: bytes, *, hiding: bool) -> bytes:
    """
    RFC 2865 section 5.2: each 16 byte block is XORed with MD5(secret + previous
    ciphertext block), the first block chaining from the request authenticator.
    """
    out = bytearray()
    prev = authenticator
    for i in range(0, len(data), 16):
        digest = hashlib.md5(secret + prev).digest()
        block = bytes(a ^ b for a, b in zip(data[i:i + 16], digest))
        out += block
        prev = block if hiding else data[i:i + 16]
    return bytes(out)


def sent_authenticator(data: bytes) -> bytes:
    """Authenticator field of an encoded packet, as it went on the wire."""
    return bytes(data[4:_HDR_SIZE])


def _decode_attributes(body: bytes) -> list[tuple[int, bytes]]:
    attrs: list[tuple[int, bytes]] = []
    pos = 0
    while pos < len(body):
        if len(body) - pos < _ATTR_HDR_SIZE:
            raise DecodeError("truncated attribute header")
        atype, alen = body[pos], body[pos + 1]
        if alen < _ATTR_HDR_SIZE:
            raise DecodeError(f"bad length {alen} for attribute {atype}")
        if pos + alen > len(body):
            raise DecodeError(f"attribute {atype} overruns packet")
        attrs.append((atype, bytes(body[pos + _ATTR_HDR_SIZE:pos + alen])))
        pos += alen
    return attrs


@dataclass
class Packet:
    """
    A RADIUS packet: header fields plus ordered (type, value) attributes.

    For responses, `authenticator` holds the authenticator of the request
    being answered; the Response Authenticator is computed by encode().
    """
    code: Code
    identifier: int
    secret: bytes
    authenticator: bytes | None = None
    attributes: list[tuple[int, bytes]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.secret = _as_bytes(self.secret)
        if self.authenticator is None:
            self.authenticator = secrets.token_bytes(AUTHENTICATOR_SIZE)

    @classmethod
    def new_request(cls, code: Code, secret: bytes | str) -> Packet:
        return cls(code=code, identifier=secrets.randbelow(256), secret=secret)

    def make_response(self, code: Code) -> Packet:
        return Packet(code=code, identifier=self.identifier, secret=self.secret, authenticator=self.authenticator)

    def get_secret(self) -> bytes:
        return self.secret

    # attribute access
    def add(self, atype: int, value: bytes) -> None:
        self.attributes.append((atype, bytes(value)))

    def get(self, atype: int) -> bytes | None:
        for t, v in self.attributes:
            if t == atype:
                return v
        return None

    def get_all(self, atype: int) -> list[bytes]:
        return [v for t, v in self.attributes if t == atype]

    def add_string(self, atype: int, value: str) -> None:
        self.add(atype, value.encode())

    def get_string(self, atype: int) -> str | None:
        v = self.get(atype)
        return None if v is None else v.decode(errors="replace")

    def add_integer(self, atype: int, value: int) -> None:
        try:
            self.add(atype, struct.pack(_INT_FMT, value))
        except struct.error as e:
            raise EncodeError(f"attribute {atype}: {e}") from e

    def get_integer(self, atype: int) -> int | None:
        v = self.get(atype)
        if v is None:
            return None
        if len(v) != 4:
            raise DecodeError(f"attribute {atype} is not a 32-bit integer")
        return struct.unpack(_INT_FMT, v)[0]

    def add_ipv4(self, atype: int, value: str) -> None:
        self.add(atype, ipaddress.IPv4Address(value).packed)

    def get_ipv4(self, atype: int) -> str | None:
        v = self.get(atype)
        if v is None:
            return None
        if len(v) != 4:
            raise DecodeError(f"attribute {atype} is not an IPv4 address")
        return str(ipaddress.IPv4Address(v))

    def add_user_password(self, password: bytes | str) -> None:
        password = _as_bytes(password)
        if len(password) > MAX_PASSWORD_SIZE:
            raise EncodeError("password too long")
        padded = password.ljust(max(16, -(-len(password) // 16) * 16), b"\x00")
        self.add(at.USER_PASSWORD, _xor_chain(padded, self.secret, self.authenticator, hiding=True))

    def get_user_password(self) -> bytes | None:
        hidden = self.get(at.USER_PASSWORD)
        if hidden is None:
            return None
        if not hidden or len(hidden) % 16:
            raise DecodeError("User-Password length is not a multiple of 16")
        return _xor_chain(hidden, self.secret, self.authenticator, hiding=False).rstrip(b"\x00")

    # wire format
    def _encode_attributes(self) -> bytes:
        out = bytearray()
        for atype, value in self.attributes:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise EncodeError(f"attribute {atype} value must be bytes, got {type(value).__name__}")
            if not isinstance(atype, int) or not (1 <= atype <= 255):
                raise EncodeError(f"attribute type {atype} must be in 1..255")
            if len(value) > MAX_ATTR_VALUE_SIZE:
                raise EncodeError(f"attribute {atype} value too large ({len(value)} bytes)")
            out += bytes((atype, len(value) + _ATTR_HDR_SIZE)) + value
        return bytes(out)

    def encode(self) -> bytes:
        try:
            code = Code(self.code)
        except ValueError:
            raise EncodeError(f"unknown packet code {self.code}") from None
        if not (0 <= self.identifier <= 255):
            raise EncodeError("identifier must fit in a byte")
        if len(self.authenticator) != AUTHENTICATOR_SIZE:
            raise EncodeError("authenticator must be 16 bytes")

        body = self._encode_attributes()
        length = _HDR_SIZE + len(body)
        if length > MAX_PACKET_SIZE:
            raise EncodeError(f"packet too large ({length} bytes)")

        if code in _RANDOM_AUTH_CODES:
            auth = self.authenticator
        elif code == Code.ACCOUNTING_REQUEST:
            auth = _digest(code, self.identifier, length, bytes(AUTHENTICATOR_SIZE), body, self.secret)
        else:
            auth = _digest(code, self.identifier, length, self.authenticator, body, self.secret)
        return struct.pack(_HDR_FMT, code, self.identifier, length, auth) + body

    @classmethod
    def decode(cls, data: bytes, secret: bytes | str, request_authenticator: bytes | None = None) -> Packet:
        """
        Parse a packet. When `request_authenticator` is given the Response
        Authenticator is checked against `secret`; Accounting-Request
        authenticators are always checked. Bytes past the length field are
        padding and are ignored.
        """
        secret = _as_bytes(secret)
        if len(data) < _HDR_SIZE:
            raise DecodeError("packet too short")

        raw_code, identifier, length, authenticator = struct.unpack(_HDR_FMT, data[:_HDR_SIZE])
        if length < _HDR_SIZE or length > MAX_PACKET_SIZE:
            raise DecodeError(f"bad length field {length}")
        if length > len(data):
            raise DecodeError("packet truncated")
        try:
            code = Code(raw_code)
        except ValueError:
            raise DecodeError(f"unknown packet code {raw_code}") from None

        body = bytes(data[_HDR_SIZE:length])
        attributes = _decode_attributes(body)

        if request_authenticator is not None:
            expected = _digest(code, identifier, length, request_authenticator, body, secret)
            if not hmac.compare_digest(expected, authenticator):
                raise DecodeError("response authenticator mismatch")
            authenticator = request_authenticator
        elif code == Code.ACCOUNTING_REQUEST:
            expected = _digest(code, identifier, length, bytes(AUTHENTICATOR_SIZE), body, secret)
            if not hmac.compare_digest(expected, authenticator):
                raise DecodeError("request authenticator mismatch")

        return cls(code=code, identifier=identifier, secret=secret, authenticator=authenticator, attributes=attributes)
