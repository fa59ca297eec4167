import pytest

from radclient.config.settings import get_settings
from radclient.transport.udp import ExchangeClient


def test_defaults(monkeypatch):
    for name in ("RADCLIENT_CONNECTION_TIMEOUT_S", "RADCLIENT_SOCKET_TIMEOUT_S", "SIM_UDP_PORT", "SIM_SECRET"):
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.connection_timeout_s is None
    assert s.socket_timeout_s is None
    assert s.sim_udp_port == 1812
    assert s.sim_secret == "testing123"


def test_timeouts_from_env(monkeypatch):
    monkeypatch.setenv("RADCLIENT_CONNECTION_TIMEOUT_S", "0.25")
    monkeypatch.setenv("RADCLIENT_SOCKET_TIMEOUT_S", "none")

    client = ExchangeClient.from_settings(get_settings())
    assert client.connection_timeout_s == 0.25
    assert client.socket_timeout_s is None


def test_negative_timeout_is_kept(monkeypatch):
    monkeypatch.setenv("RADCLIENT_SOCKET_TIMEOUT_S", "-1")
    assert get_settings().socket_timeout_s == -1.0


def test_bad_timeout_names_the_variable(monkeypatch):
    monkeypatch.setenv("RADCLIENT_SOCKET_TIMEOUT_S", "soon")
    with pytest.raises(ValueError, match="RADCLIENT_SOCKET_TIMEOUT_S"):
        get_settings()
