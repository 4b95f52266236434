import pytest

from blindbid.crypto import lift_x
from blindbid.errors import SealingFailure


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def off_curve_point():
    """A 32-byte x coordinate with no matching point on secp256k1."""
    for x in range(2, 1000):
        candidate = x.to_bytes(32, "big")
        try:
            lift_x(candidate)
        except SealingFailure:
            return candidate
    raise AssertionError("no off-curve x below 1000")
