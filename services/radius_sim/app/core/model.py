from __future__ import annotations
from dataclasses import dataclass, field
from .faults import FaultConfig

@dataclass
class SimModel:
    default_secret: bytes = b"testing123"
    users: dict[str, bytes] = field(default_factory=lambda: {"alice": b"wonderland"})
    secret: bytes = field(init=False)
    requests_received: int = 0
    responses_sent: int = 0
    dropped: int = 0
    reset_count: int = 0
    faults: FaultConfig = field(default_factory=FaultConfig)

    def __post_init__(self) -> None:
        self.secret = self.default_secret

    def reset(self) -> None:
        self.secret = self.default_secret
        self.requests_received = 0
        self.responses_sent = 0
        self.dropped = 0
        self.faults = FaultConfig()
        self.reset_count += 1

    def check_credentials(self, user: str, password: bytes) -> bool:
        return self.users.get(user) == password

    def counters(self) -> dict:
        return {
            "requests_received": self.requests_received,
            "responses_sent": self.responses_sent,
            "dropped": self.dropped,
        }
