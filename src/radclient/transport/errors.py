from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from radclient.transport.udp import UdpEndpoint


class ErrorKind(str, Enum):
    BIND = "BIND"
    CONNECT = "CONNECT"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    ENCODE_PACKET = "ENCODE_PACKET"
    SEND = "SEND"
    RECEIVE = "RECEIVE"
    SOCKET_TIMEOUT = "SOCKET_TIMEOUT"
    DECODE_PACKET = "DECODE_PACKET"


_MESSAGES = {
    ErrorKind.BIND: "failed to bind a UDP socket",
    ErrorKind.CONNECT: "failed to establish a UDP connection to {remote}",
    ErrorKind.CONNECTION_TIMEOUT: "connection timeout",
    ErrorKind.ENCODE_PACKET: "failed to encode a RADIUS request",
    ErrorKind.SEND: "failed to send a UDP datagram to {remote}",
    ErrorKind.RECEIVE: "failed to receive the UDP response from {remote}",
    ErrorKind.SOCKET_TIMEOUT: "socket timeout",
    ErrorKind.DECODE_PACKET: "failed to decode a RADIUS response packet",
}


class ClientError(Exception):
    """
    The one error raised by an exchange. `kind` says which step failed,
    `cause` keeps the underlying exception (None for timeouts) and `remote`
    is set for the steps that talk to the peer.
    """

    def __init__(
        self,
        kind: ErrorKind,
        cause: BaseException | None = None,
        remote: UdpEndpoint | None = None,
    ):
        # args mirror the signature so pickle and copy rebuild the error
        super().__init__(kind, cause, remote)
        self.kind = kind
        self.cause = cause
        self.remote = remote

    def __str__(self) -> str:
        msg = _MESSAGES[self.kind].format(remote=self.remote)
        if self.cause is not None:
            msg = f"{msg}; {self.cause}"
        return msg

    @property
    def is_timeout(self) -> bool:
        return self.kind in (ErrorKind.CONNECTION_TIMEOUT, ErrorKind.SOCKET_TIMEOUT)

    def __repr__(self) -> str:
        return f"ClientError(kind={self.kind.value}, remote={self.remote}, cause={self.cause!r})"
