import pytest
from fastapi.testclient import TestClient

from radclient.config.settings import get_settings
from radclient.api.client import SimApiClient
from radclient.core import attrtypes as at
from radclient.core.packet import Code, Packet
from radclient.transport.udp import UdpEndpoint


@pytest.fixture(scope="session")
def simulator_app():
    """
    Runs the simulator app in-process for the test session. The UDP responder
    binds an ephemeral port; tests look it up through /status.
    """
    mp = pytest.MonkeyPatch()
    mp.setenv("SIM_UDP_PORT", "0")
    from services.radius_sim.app.main import app

    try:
        with TestClient(app) as client:
            yield client
    finally:
        mp.undo()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def sim_api(simulator_app, settings):
    """
    Control client for the simulator, reset so each test starts clean.
    The underlying TestClient belongs to the session and is not closed here.
    """
    client = SimApiClient(settings.sim_http, client=simulator_app)
    client.reset()
    return client


@pytest.fixture
def sim_endpoint(sim_api, settings):
    return UdpEndpoint(settings.sim_udp_host, sim_api.udp_port())


@pytest.fixture
def make_access_request(settings):
    def _make(user: str = "alice", password: str = "wonderland", secret: str | None = None) -> Packet:
        req = Packet.new_request(Code.ACCESS_REQUEST, secret or settings.sim_secret)
        req.add_string(at.USER_NAME, user)
        req.add_user_password(password)
        req.add_string(at.NAS_IDENTIFIER, "pytest")
        return req
    return _make
