from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel, Field

from services.radius_sim.app.core.model import SimModel
from services.radius_sim.app.core.responder import start_responder
from radclient.config.settings import get_settings

MODEL = SimModel(default_secret=get_settings().sim_secret.encode())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    transport, _ = await start_responder(MODEL, settings.sim_udp_host, settings.sim_udp_port)
    app.state.udp_transport = transport
    try:
        yield
    finally:
        transport.close()


app = FastAPI(title="RADIUS Responder Simulator", version="0.1.0", lifespan=lifespan)


class FaultsIn(BaseModel):
    delay_ms: int = Field(0, ge=0, le=5000)
    drop_rate: float = Field(0.0, ge=0.0, le=1.0)
    corrupt_rate: float = Field(0.0, ge=0.0, le=1.0)


class SecretIn(BaseModel):
    secret: str = Field(..., min_length=1)


def _udp_port() -> int | None:
    t = getattr(app.state, "udp_transport", None)
    if t is None:
        return None
    return t.get_extra_info("sockname")[1]


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/status")
def status():
    return {
        "udp_port": _udp_port(),
        "reset_count": MODEL.reset_count,
        "counters": MODEL.counters(),
        "faults": MODEL.faults.as_dict(),
    }


@app.post("/control/reset")
def reset():
    MODEL.reset()
    return {"status": "reset", "reset_count": MODEL.reset_count}


@app.get("/control/faults")
def get_faults():
    return MODEL.faults.as_dict()


@app.post("/control/faults")
def set_faults(f: FaultsIn):
    MODEL.faults.delay_ms = f.delay_ms
    MODEL.faults.drop_rate = f.drop_rate
    MODEL.faults.corrupt_rate = f.corrupt_rate
    return {"status": "faults_updated", "faults": f.model_dump()}


@app.post("/control/secret")
def set_secret(s: SecretIn):
    MODEL.secret = s.secret.encode()
    return {"status": "secret_updated"}


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("SIM_HTTP_HOST", "127.0.0.1"),
        port=int(os.getenv("SIM_HTTP_PORT", "8000")),
        reload=False)
