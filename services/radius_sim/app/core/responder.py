from __future__ import annotations
import asyncio
import logging

from radclient.core import attrtypes as at
from radclient.core.packet import Code, DecodeError, Packet
from .model import SimModel

logger = logging.getLogger(__name__)


def build_reply(model: SimModel, request: Packet) -> Packet | None:
    """Decide the answer to one request; None means stay silent."""
    if request.code == Code.ACCESS_REQUEST:
        user = request.get_string(at.USER_NAME)
        try:
            password = request.get_user_password()
        except DecodeError:
            password = None

        if user is not None and password is not None and model.check_credentials(user, password):
            reply = request.make_response(Code.ACCESS_ACCEPT)
            reply.add_string(at.REPLY_MESSAGE, f"welcome {user}")
            reply.add_integer(at.SESSION_TIMEOUT, 3600)
        else:
            reply = request.make_response(Code.ACCESS_REJECT)
            reply.add_string(at.REPLY_MESSAGE, "invalid credentials")

        # State is echoed back unchanged (RFC 2865 section 5.24)
        state = request.get(at.STATE)
        if state is not None:
            reply.add(at.STATE, state)
        return reply

    if request.code == Code.ACCOUNTING_REQUEST:
        return request.make_response(Code.ACCOUNTING_RESPONSE)

    if request.code == Code.STATUS_SERVER:
        reply = request.make_response(Code.ACCESS_ACCEPT)
        reply.add_string(at.REPLY_MESSAGE, "alive")
        return reply

    return None


class RadiusResponder(asyncio.DatagramProtocol):
    def __init__(self, model: SimModel):
        self.model = model
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport):
        # required: stored transport for later sendto()
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        loop = asyncio.get_running_loop()
        self.model.requests_received += 1

        # drop packet
        if self.model.faults.should_drop():
            self.model.dropped += 1
            return

        # requests that fail to decode are ignored, as a real server would
        try:
            request = Packet.decode(data, self.model.secret)
        except DecodeError as e:
            logger.debug("ignoring datagram from %s: %s", addr, e)
            return

        reply = build_reply(self.model, request)
        if reply is None:
            logger.debug("no reply for code %s from %s", request.code, addr)
            return
        resp_pkt = reply.encode()

        # corrupt response AFTER ENCODING (forces authenticator mismatch)
        if self.model.faults.should_corrupt() and len(resp_pkt) > 10:
            b = bytearray(resp_pkt)
            b[8] ^= 0xFF
            resp_pkt = bytes(b)

        self.model.responses_sent += 1
        delay = self.model.faults.delay_s
        if delay > 0:
            loop.call_later(delay, self.transport.sendto, resp_pkt, addr)
        else:
            self.transport.sendto(resp_pkt, addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning("responder error_received: %s", exc)


async def start_responder(model: SimModel, host: str, port: int) -> tuple[asyncio.DatagramTransport, RadiusResponder]:
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: RadiusResponder(model),
        local_addr=(host, port),
    )
    logger.info("RADIUS responder listening on %s", transport.get_extra_info("sockname"))
    return transport, protocol
