from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass

from radclient.config.settings import Settings
from radclient.core.packet import DecodeError, EncodeError, Packet, sent_authenticator
from radclient.transport.errors import ClientError, ErrorKind

logger = logging.getLogger(__name__)

# largest UDP payload over IPv4
MAX_DATAGRAM_SIZE = 65507


@dataclass(frozen=True)
class UdpEndpoint:
    host: str
    port: int

    def __post_init__(self) -> None:
        # raises ValueError for anything that is not an IP literal
        ipaddress.ip_address(self.host)
        if not (0 <= self.port <= 65535):
            raise ValueError(f"port must be 0-65535, got {self.port}")

    @property
    def family(self) -> socket.AddressFamily:
        if ipaddress.ip_address(self.host).version == 4:
            return socket.AF_INET
        return socket.AF_INET6

    @property
    def wildcard(self) -> tuple[str, int]:
        """Local any-address of the same family, ephemeral port."""
        return ("0.0.0.0", 0) if self.family == socket.AF_INET else ("::", 0)

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __str__(self) -> str:
        if self.family == socket.AF_INET6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class ExchangeClient:
    """
    Performs one RADIUS request/response exchange per call over a fresh UDP
    socket.

    `connection_timeout_s` bounds the association of the socket with the
    remote endpoint, `socket_timeout_s` bounds sending the request and
    waiting for the reply. None means wait forever. There is no
    retransmission; callers wanting retries can check `ClientError.is_timeout`
    and call again.
    """

    def __init__(self, connection_timeout_s: float | None = None, socket_timeout_s: float | None = None):
        self._connection_timeout_s = connection_timeout_s
        self._socket_timeout_s = socket_timeout_s

    @classmethod
    def from_settings(cls, settings: Settings) -> ExchangeClient:
        return cls(
            connection_timeout_s=settings.connection_timeout_s,
            socket_timeout_s=settings.socket_timeout_s,
        )

    @property
    def connection_timeout_s(self) -> float | None:
        return self._connection_timeout_s

    @property
    def socket_timeout_s(self) -> float | None:
        return self._socket_timeout_s

    async def send_packet(self, remote: UdpEndpoint, request: Packet) -> Packet:
        """
        Send `request` to `remote` and return the decoded reply.

        The reply is decoded with the request's secret and checked against
        the authenticator the request went out with. Every failure raises ClientError.
        """
        loop = asyncio.get_running_loop()

        try:
            sock = socket.socket(remote.family, socket.SOCK_DGRAM)
        except OSError as e:
            raise ClientError(ErrorKind.BIND, e) from e

        with sock:
            try:
                sock.setblocking(False)
                sock.bind(remote.wildcard)
            except OSError as e:
                raise ClientError(ErrorKind.BIND, e) from e
            logger.debug("bound %s for exchange with %s", sock.getsockname(), remote)

            try:
                async with asyncio.timeout(self._connection_timeout_s):
                    await self._associate(loop, sock, remote)
            except TimeoutError:
                raise ClientError(ErrorKind.CONNECTION_TIMEOUT) from None

            try:
                request_data = request.encode()
            except EncodeError as e:
                raise ClientError(ErrorKind.ENCODE_PACKET, e) from e
            # Accounting-Request authenticators are only known once encoded
            request_authenticator = sent_authenticator(request_data)

            try:
                async with asyncio.timeout(self._socket_timeout_s):
                    response = await self._request(loop, sock, request_data, remote)
            except TimeoutError:
                raise ClientError(ErrorKind.SOCKET_TIMEOUT) from None

        try:
            return Packet.decode(response, request.get_secret(), request_authenticator=request_authenticator)
        except DecodeError as e:
            raise ClientError(ErrorKind.DECODE_PACKET, e) from e

    async def _associate(self, loop: asyncio.AbstractEventLoop, sock: socket.socket, remote: UdpEndpoint) -> None:
        try:
            await loop.sock_connect(sock, remote.address)
        except OSError as e:
            raise ClientError(ErrorKind.CONNECT, e, remote) from e
        logger.debug("associated with %s", remote)

    async def _request(
        self,
        loop: asyncio.AbstractEventLoop,
        sock: socket.socket,
        request_data: bytes,
        remote: UdpEndpoint,
    ) -> bytes:
        # errors are wrapped here so an OSError like ETIMEDOUT is never
        # mistaken for the socket timeout firing
        try:
            await loop.sock_sendall(sock, request_data)
        except OSError as e:
            raise ClientError(ErrorKind.SEND, e, remote) from e
        logger.debug("sent %d bytes to %s", len(request_data), remote)

        try:
            data = await loop.sock_recv(sock, MAX_DATAGRAM_SIZE)
        except OSError as e:
            raise ClientError(ErrorKind.RECEIVE, e, remote) from e
        logger.debug("received %d bytes from %s", len(data), remote)
        return data
