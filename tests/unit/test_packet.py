import hashlib
import struct

import pytest

from radclient.core import attrtypes as at
from radclient.core.packet import Code, DecodeError, EncodeError, Packet, sent_authenticator

SECRET = b"testing123"


def _access_request() -> Packet:
    req = Packet(code=Code.ACCESS_REQUEST, identifier=7, secret=SECRET, authenticator=bytes(range(16)))
    req.add_string(at.USER_NAME, "alice")
    return req


def test_access_request_layout():
    data = _access_request().encode()

    code, identifier, length, auth = struct.unpack("!BBH16s", data[:20])
    assert (code, identifier, length) == (1, 7, 27)
    assert auth == bytes(range(16))
    assert data[20:] == b"\x01\x07alice"


def test_new_request_gets_random_authenticator():
    a = Packet.new_request(Code.ACCESS_REQUEST, "s")
    b = Packet.new_request(Code.ACCESS_REQUEST, "s")
    assert len(a.authenticator) == 16
    assert a.authenticator != b.authenticator
    assert 0 <= a.identifier <= 255
    assert a.get_secret() == b"s"


def test_response_authenticator_is_md5_over_request_authenticator():
    req = _access_request()
    resp = req.make_response(Code.ACCESS_ACCEPT)
    resp.add_string(at.REPLY_MESSAGE, "hi")
    data = resp.encode()

    body = b"\x12\x04hi"
    expected = hashlib.md5(struct.pack("!BBH", 2, 7, 24) + req.authenticator + body + SECRET).digest()
    assert data[4:20] == expected

    decoded = Packet.decode(data, SECRET, request_authenticator=req.authenticator)
    assert decoded == resp


def test_response_with_wrong_secret_is_rejected():
    req = _access_request()
    data = req.make_response(Code.ACCESS_REJECT).encode()

    with pytest.raises(DecodeError, match="authenticator mismatch"):
        Packet.decode(data, b"other", request_authenticator=req.authenticator)

    # without the request authenticator there is nothing to check against
    assert Packet.decode(data, b"other").code == Code.ACCESS_REJECT


def test_accounting_request_authenticator_is_verified():
    req = Packet(code=Code.ACCOUNTING_REQUEST, identifier=3, secret=SECRET)
    req.add_integer(at.ACCT_STATUS_TYPE, at.ACCT_STATUS_STOP)
    data = req.encode()

    assert Packet.decode(data, SECRET).get_integer(at.ACCT_STATUS_TYPE) == at.ACCT_STATUS_STOP
    with pytest.raises(DecodeError, match="request authenticator mismatch"):
        Packet.decode(data, b"other")


def test_accounting_response_checks_against_sent_authenticator():
    req = Packet(code=Code.ACCOUNTING_REQUEST, identifier=9, secret=SECRET)
    req.add_string(at.ACCT_SESSION_ID, "0001")
    wire = req.encode()

    seen = Packet.decode(wire, SECRET)
    reply = seen.make_response(Code.ACCOUNTING_RESPONSE).encode()

    decoded = Packet.decode(reply, SECRET, request_authenticator=sent_authenticator(wire))
    assert decoded.code == Code.ACCOUNTING_RESPONSE
    assert decoded.identifier == 9

    # the random authenticator held locally never went on the wire
    with pytest.raises(DecodeError, match="response authenticator mismatch"):
        Packet.decode(reply, SECRET, request_authenticator=req.authenticator)


def test_user_password_is_hidden_and_recovered():
    req = _access_request()
    req.add_user_password("a password longer than sixteen bytes")

    hidden = req.get(at.USER_PASSWORD)
    assert len(hidden) == 48
    assert b"password" not in hidden

    seen = Packet.decode(req.encode(), SECRET)
    assert seen.get_user_password() == b"a password longer than sixteen bytes"


def test_typed_attribute_helpers():
    p = _access_request()
    p.add_ipv4(at.NAS_IP_ADDRESS, "192.0.2.10")
    p.add_integer(at.NAS_PORT, 5)
    p.add(at.CLASS, b"a")
    p.add(at.CLASS, b"b")

    assert p.get_ipv4(at.NAS_IP_ADDRESS) == "192.0.2.10"
    assert p.get_integer(at.NAS_PORT) == 5
    assert p.get_all(at.CLASS) == [b"a", b"b"]
    assert p.get(at.STATE) is None
    assert p.get_string(at.USER_NAME) == "alice"


def test_trailing_padding_is_ignored():
    data = _access_request().encode()
    assert Packet.decode(data + b"\x00" * 5, SECRET) == Packet.decode(data, SECRET)


@pytest.mark.parametrize(
    "data, message",
    [
        (b"\x01\x02\x00", "too short"),
        (struct.pack("!BBH16s", 1, 1, 19, bytes(16)), "bad length field"),
        (struct.pack("!BBH16s", 1, 1, 40, bytes(16)), "truncated"),
        (struct.pack("!BBH16s", 99, 1, 20, bytes(16)), "unknown packet code"),
        (struct.pack("!BBH16s", 1, 1, 23, bytes(16)) + b"\x01\x01\x00", "bad length 1"),
        (struct.pack("!BBH16s", 1, 1, 23, bytes(16)) + b"\x01\x05\x00", "overruns"),
        (struct.pack("!BBH16s", 1, 1, 21, bytes(16)) + b"\x01", "truncated attribute header"),
    ],
)
def test_malformed_packets(data, message):
    with pytest.raises(DecodeError, match=message):
        Packet.decode(data, SECRET)


def test_encode_rejects_oversized_attribute():
    p = _access_request()
    p.add(at.REPLY_MESSAGE, b"x" * 254)
    with pytest.raises(EncodeError, match="too large"):
        p.encode()


def test_encode_rejects_oversized_packet():
    p = _access_request()
    for _ in range(20):
        p.add(at.CLASS, b"x" * 253)
    with pytest.raises(EncodeError, match="packet too large"):
        p.encode()


def test_encode_rejects_bad_header_fields():
    with pytest.raises(EncodeError, match="identifier"):
        Packet(code=Code.ACCESS_REQUEST, identifier=256, secret=SECRET).encode()
    with pytest.raises(EncodeError, match="authenticator"):
        Packet(code=Code.ACCESS_REQUEST, identifier=1, secret=SECRET, authenticator=b"short").encode()
    with pytest.raises(EncodeError, match="attribute type"):
        Packet(code=Code.ACCESS_REQUEST, identifier=1, secret=SECRET, attributes=[(0, b"")]).encode()


def test_encode_rejects_non_bytes_values():
    p = Packet(code=Code.ACCESS_REQUEST, identifier=1, secret=SECRET, attributes=[(at.USER_NAME, "alice")])
    with pytest.raises(EncodeError, match="must be bytes, got str"):
        p.encode()

    p = Packet(code=Code.ACCESS_REQUEST, identifier=1, secret=SECRET, attributes=[("1", b"alice")])
    with pytest.raises(EncodeError, match="attribute type"):
        p.encode()
