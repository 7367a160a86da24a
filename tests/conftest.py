"""Shared fixtures for censo-lookup tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from censo_lookup.config import assemble_config
from censo_lookup.models import Dimension, RemoteLookupResponse, SnapshotResponse


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_snapshot():
    """Header plus two registered people."""
    return [
        ["Numero de documento", "Nombre"],
        ["123456", "Ana"],
        ["987654", "Luis"],
    ]


@pytest.fixture
def header_fragments():
    return {
        Dimension.CEDULA: ("documento", "cedula"),
        Dimension.CODIGO: ("registro", "codigo"),
    }


@pytest.fixture
def endpoints():
    return [
        "https://relay-a.example.com/exec",
        "https://relay-b.example.com/exec",
        "https://relay-c.example.com/exec",
    ]


@pytest.fixture
def lookup_config(endpoints):
    return assemble_config({"endpoints": endpoints})


@pytest.fixture
def relay_client():
    """RelayClient stand-in whose calls can be counted and scripted."""
    client = MagicMock()
    client.lookup = AsyncMock(
        return_value=RemoteLookupResponse(
            success=True, found=True, columnName="Numero de documento", totalRows=3,
            row={"Nombre": "Ana"},
        )
    )
    client.fetch_snapshot = AsyncMock(
        return_value=SnapshotResponse(
            success=True,
            data={"values": [["Numero de documento", "Nombre"], ["123456", "Ana"]]},
        )
    )
    return client
