"""Tests for storage/device_registry.py"""
import json
import os
import threading
from datetime import datetime
from unittest.mock import patch

import pytest

from discovery.device import Device
from storage.device_registry import DeviceRegistry


class TestRegistryAccess:
    """Tests for lookups and mutations."""

    def test_empty(self, registry):
        assert len(registry) == 0
        assert registry.snapshot() == []
        assert registry.get("192.168.1.1") is None
        assert not registry.contains("192.168.1.1")

    def test_get_or_create(self, registry):
        device, created = registry.get_or_create("192.168.1.7")
        assert created is True
        assert device.ip == "192.168.1.7"

        _, created_again = registry.get_or_create("192.168.1.7")
        assert created_again is False
        assert len(registry) == 1

    def test_get_or_create_uses_factory(self, registry):
        device, _ = registry.get_or_create(
            "192.168.1.7", lambda: Device(ip="ignored", hostname="tv.lan")
        )
        assert device.hostname == "tv.lan"
        assert device.ip == "192.168.1.7"

    def test_upsert_creates_then_updates(self, registry):
        assert registry.upsert("192.168.1.8", hostname="pi.lan") is True
        assert registry.upsert("192.168.1.8", is_online=True) is False
        device = registry.get("192.168.1.8")
        assert device.hostname == "pi.lan"
        assert device.is_online is True

    def test_upsert_refuses_ip_change(self, registry):
        with pytest.raises(ValueError):
            registry.upsert("192.168.1.8", ip="192.168.1.9")

    def test_upsert_accepts_non_ip_fields_by_keyword(self, registry):
        registry.upsert("192.168.1.8", hostname="pi.lan", mac="aa:bb:cc:dd:ee:ff")
        device = registry.get("192.168.1.8")
        assert device.ip == "192.168.1.8"
        assert device.mac == "aa:bb:cc:dd:ee:ff"

    def test_update_unknown_without_factory(self, registry):
        assert registry.update("192.168.1.9", lambda d: None) is None
        assert not registry.contains("192.168.1.9")

    def test_update_keeps_key(self, registry):
        registry.upsert("192.168.1.8")

        def rename(device):
            device.ip = "10.0.0.1"

        registry.update("192.168.1.8", rename)
        assert registry.get("192.168.1.8").ip == "192.168.1.8"

    def test_reads_return_copies(self, registry):
        registry.upsert("192.168.1.8", open_services=["SSH"])
        device = registry.get("192.168.1.8")
        device.open_services.append("HTTP")
        device.hostname = "changed"

        fresh = registry.get("192.168.1.8")
        assert fresh.open_services == ["SSH"]
        assert fresh.hostname == ""

    def test_snapshot_sorted_numerically(self, registry):
        for ip in ["192.168.1.100", "192.168.1.9", "192.168.1.20"]:
            registry.upsert(ip)
        assert [d.ip for d in registry.snapshot()] == [
            "192.168.1.9", "192.168.1.20", "192.168.1.100"
        ]

    def test_concurrent_updates(self, registry):
        """Writers from many threads never lose an update."""
        registry.upsert("192.168.1.1", open_services=[])

        def add_services(n):
            for i in range(50):
                registry.update(
                    "192.168.1.1", lambda d, tag=f"{n}-{i}": d.open_services.append(tag)
                )

        threads = [threading.Thread(target=add_services, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(registry.get("192.168.1.1").open_services) == 400


class TestRegistryPersistence:
    """Tests for the JSON snapshot."""

    def test_save_and_load_forces_offline(self, registry, devices_path):
        registry.upsert(
            "192.168.1.100",
            hostname="nas.lan",
            mac="00:11:32:aa:bb:cc",
            open_services=["HTTP"],
            is_online=True,
            last_seen=datetime(2026, 1, 20, 18, 4, 5),
        )
        assert registry.save(devices_path) is True

        restored = DeviceRegistry()
        assert restored.load(devices_path) == 1
        device = restored.get("192.168.1.100")
        assert device.is_online is False
        assert device.hostname == "nas.lan"
        assert device.open_services == ["HTTP"]
        assert device.last_seen == datetime(2026, 1, 20, 18, 4, 5)

    def test_saved_file_is_keyed_by_ip(self, registry, devices_path):
        registry.upsert("192.168.1.5", friendly_name="Kitchen Speaker")
        registry.save(devices_path)
        data = json.loads(devices_path.read_text())
        assert list(data) == ["192.168.1.5"]
        assert data["192.168.1.5"]["friendly_name"] == "Kitchen Speaker"

    def test_load_snapshot_written_elsewhere(self, registry, devices_path, sample_device_data):
        devices_path.write_text(json.dumps({"192.168.1.100": sample_device_data}))
        assert registry.load(devices_path) == 1
        device = registry.get("192.168.1.100")
        assert device.is_online is False
        assert device.service_metadata == {"_smb._tcp": "model=DS920+"}

    def test_key_wins_over_embedded_ip(self, registry, devices_path):
        devices_path.write_text(json.dumps({"10.0.0.5": {"ip": "10.0.0.99"}}))
        registry.load(devices_path)
        assert registry.contains("10.0.0.5")
        assert not registry.contains("10.0.0.99")

    def test_load_missing_file(self, registry, devices_path):
        assert registry.load(devices_path) == 0

    def test_load_corrupt_file(self, registry, devices_path):
        devices_path.write_text("{not json")
        assert registry.load(devices_path) == 0
        assert len(registry) == 0

    def test_save_leaves_no_temp_files(self, registry, devices_path):
        registry.upsert("192.168.1.5")
        registry.save(devices_path)
        registry.save(devices_path)
        assert sorted(os.listdir(devices_path.parent)) == ["devices.json"]

    def test_failed_save_keeps_previous_snapshot(self, registry, devices_path):
        registry.upsert("192.168.1.5")
        registry.save(devices_path)
        before = devices_path.read_text()

        registry.upsert("192.168.1.6")
        with patch("storage.device_registry.os.replace", side_effect=OSError("disk full")):
            assert registry.save(devices_path) is False

        assert devices_path.read_text() == before
        assert sorted(os.listdir(devices_path.parent)) == ["devices.json"]
