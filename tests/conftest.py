"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any, Generator

import pytest
import respx

from cleura._config import CleuraConfig
from cleura.client import CleuraClient


class FakeClock:
    """Monotonic clock that only advances when slept on."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock and sleeper for waiter timing tests."""
    return FakeClock()


@pytest.fixture
def username() -> str:
    """Test account login."""
    return "ops@example.com"


@pytest.fixture
def token() -> str:
    """Test API token."""
    return "test-token-12345"


@pytest.fixture
def base_url() -> str:
    """Test API base URL."""
    return "https://rest.test.cleura.cloud"


@pytest.fixture
def mock_api(base_url: str) -> Generator[respx.MockRouter, None, None]:
    """Mock API router."""
    with respx.mock(base_url=base_url, assert_all_called=False) as router:
        yield router


@pytest.fixture
def client(username: str, token: str, base_url: str) -> Generator[CleuraClient, None, None]:
    """Create a test CleuraClient that ignores local config."""
    c = CleuraClient(username, token=token, host=base_url, max_retries=2, config=CleuraConfig())
    yield c
    c.close()


@pytest.fixture
def sample_shoot() -> dict[str, Any]:
    """Shoot as returned by the get endpoint."""
    return {
        "metadata": {"name": "demo", "uid": "uid-1"},
        "spec": {
            "purpose": "evaluation",
            "region": "sto2",
            "provider": {
                "infrastructureConfig": {
                    "floatingPoolName": "ext-net",
                    "networks": {
                        "id": "net-1",
                        "router": {"id": "router-1"},
                        "workers": "10.250.0.0/16",
                    },
                },
                "workers": [
                    {
                        "name": "wg1",
                        "minimum": 1,
                        "maximum": 3,
                        "maxSurge": 1,
                        "machine": {
                            "type": "b.2c4gb",
                            "image": {"name": "gardenlinux", "version": "1592.1.0"},
                        },
                        "volume": {"size": "50Gi"},
                        "annotations": {"team": "platform"},
                        "labels": {"tier": "web"},
                        "taints": [{"key": "dedicated", "value": "web", "effect": "NoSchedule"}],
                        "zones": ["sto2a"],
                    }
                ],
            },
            "kubernetes": {"version": "1.31.2"},
            "hibernation": {"enabled": False, "schedules": None},
            "maintenance": {
                "autoUpdate": {"kubernetesVersion": True, "machineImageVersion": True},
                "timeWindow": {"begin": "000000+0100", "end": "010000+0100"},
            },
        },
        "status": {
            "conditions": [
                {"type": "APIServerAvailable", "status": "True", "message": "ok"},
                {"type": "EveryNodeReady", "status": "True", "message": "ok"},
            ],
            "hibernated": False,
            "lastOperation": {
                "type": "Reconcile",
                "state": "Succeeded",
                "progress": 100,
                "description": "Shoot cluster has been successfully reconciled.",
            },
            "advertisedAddresses": [{"name": "external", "url": "https://api.demo.example"}],
        },
    }


@pytest.fixture
def sample_profile() -> dict[str, Any]:
    """Cloud profile as returned by the cloudprofile endpoint."""
    return {
        "spec": {
            "kubernetes": {
                "versions": [
                    {"version": "1.30.0", "classification": "supported"},
                    {"version": "1.31.2", "classification": "supported"},
                    {"version": "1.29.9", "classification": "supported"},
                    {"version": "1.32.0", "classification": "preview"},
                    {
                        "version": "1.28.4",
                        "classification": "deprecated",
                        "expirationDate": "2025-01-31T23:59:59Z",
                    },
                ]
            },
            "machineImages": [
                {
                    "name": "gardenlinux",
                    "versions": [
                        {"version": "1443.10.0", "classification": "supported"},
                        {"version": "1592.1.0", "classification": "supported"},
                        {"version": "1600.0.0", "classification": "preview"},
                    ],
                },
                {
                    "name": "ubuntu",
                    "versions": [{"version": "22.4.0", "classification": "supported"}],
                },
            ],
            "machineTypes": [
                {"name": "b.2c4gb", "cpu": "2", "memory": "4Gi", "usable": True},
                {"name": "b.4c8gb", "cpu": "4", "memory": "8Gi", "usable": True},
                {"name": "b.4c16gb", "cpu": "4", "memory": "16Gi", "usable": True},
            ],
            "regions": [
                {"name": "sto2", "zones": [{"name": "sto2a"}, {"name": "sto2b"}]},
                {"name": "fra1", "zones": [{"name": "fra1a"}]},
            ],
        }
    }
