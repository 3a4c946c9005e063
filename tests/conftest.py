"""Pytest configuration and shared fixtures.

This module provides:
- Common test fixtures for data directories and sample device data
- A registry factory and a fake TCP connect function for discovery tests
- Pytest markers for test categorization (unit, integration, slow)
"""
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, Iterable
from unittest.mock import MagicMock, patch

import pytest

from storage.device_registry import DeviceRegistry


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: mark test as a unit test (fast, isolated)")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# =============================================================================
# Directory and Path Fixtures
# =============================================================================


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def devices_path(temp_data_dir: Path) -> Path:
    """Path for a temporary device snapshot."""
    return temp_data_dir / "devices.json"


@pytest.fixture
def config_path(temp_data_dir: Path) -> Path:
    """Path for a temporary configuration file."""
    return temp_data_dir / "config.json"


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_device_data() -> dict[str, Any]:
    """One persisted device entry as the snapshot stores it."""
    return {
        "ip": "192.168.1.100",
        "hostname": "nas.lan",
        "mac": "00:11:32:aa:bb:cc",
        "manufacturer": "Synology",
        "ports": ["HTTP", "SSH"],
        "last_seen": "2026-01-20T18:04:05.123456789+01:00",
        "is_online": True,
        "friendly_name": "Basement NAS",
        "device_type": "Computer/NAS",
        "mdns_info": {"_smb._tcp": "model=DS920+"},
    }


@pytest.fixture
def registry() -> DeviceRegistry:
    """Empty device registry."""
    return DeviceRegistry()


# =============================================================================
# Network Fakes
# =============================================================================


@pytest.fixture
def fake_connect() -> Callable[[Iterable[tuple[str, int]]], Callable[[str, int, float], bool]]:
    """Build a TCP connect function that accepts only the given (ip, port) pairs."""

    def build(open_ports: Iterable[tuple[str, int]]) -> Callable[[str, int, float], bool]:
        accepted = set(open_ports)

        def connect(ip: str, port: int, timeout: float) -> bool:
            return (ip, port) in accepted

        return connect

    return build


@pytest.fixture
def mock_network_interface() -> Generator[MagicMock, None, None]:
    """Mock network interface enumeration."""
    with patch("psutil.net_if_addrs") as mock_addrs:
        mock_addrs.return_value = {
            "lo": [
                MagicMock(family=2, address="127.0.0.1", netmask="255.0.0.0"),
            ],
            "eth0": [
                MagicMock(family=2, address="10.0.0.23", netmask="255.255.255.0"),
            ],
        }
        yield mock_addrs
