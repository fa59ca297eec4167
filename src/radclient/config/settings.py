from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class Settings:
    connection_timeout_s: float | None
    socket_timeout_s: float | None
    sim_http: str
    sim_udp_host: str
    sim_udp_port: int
    sim_secret: str


def _env_seconds(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw or raw.lower() == "none":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


def get_settings() -> Settings:
    """
    Centralized configuration for the client, the simulator and the tests.
    Values come from environment variables with safe defaults; unset
    timeouts mean wait forever.
    """
    return Settings(
        connection_timeout_s=_env_seconds("RADCLIENT_CONNECTION_TIMEOUT_S"),
        socket_timeout_s=_env_seconds("RADCLIENT_SOCKET_TIMEOUT_S"),
        sim_http=os.getenv("SIM_HTTP", "http://127.0.0.1:8000"),
        sim_udp_host=os.getenv("SIM_UDP_HOST", "127.0.0.1"),
        sim_udp_port=int(os.getenv("SIM_UDP_PORT", "1812")),
        sim_secret=os.getenv("SIM_SECRET", "testing123"),
    )
