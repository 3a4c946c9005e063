"""Tests for discovery/arp.py"""
import subprocess
from unittest.mock import patch

from config.exceptions import SubprocessError
from discovery.arp import (
    ArpEnricher,
    parse_arp_command,
    parse_proc_arp,
    read_neighbor_table,
)

PROC_ARP = """\
IP address       HW type     Flags       HW address            Mask     Device
10.0.0.1         0x1         0x2         b8:27:eb:00:00:01     *        eth0
10.0.0.5         0x1         0x2         aa:bb:cc:dd:ee:ff     *        eth0
10.0.0.9         0x1         0x0         00:00:00:00:00:00     *        eth0
192.168.7.4      0x1         0x2         11:22:33:44:55:66     *        wlan0
"""

ARP_AN = """\
? (10.0.0.1) at b8:27:eb:0:0:1 on en0 ifscope [ethernet]
? (10.0.0.12) at (incomplete) on en0 ifscope [ethernet]
? (10.0.0.255) at ff:ff:ff:ff:ff:ff on en0 ifscope [ethernet]
"""


class TestParsers:
    """Tests for neighbor table parsing."""

    def test_parse_proc_arp_skips_header(self):
        entries = parse_proc_arp(PROC_ARP)
        assert entries[0] == ("10.0.0.1", "b8:27:eb:00:00:01")
        assert len(entries) == 4

    def test_parse_proc_arp_ignores_short_lines(self):
        assert parse_proc_arp("header\n\n10.0.0.1 0x1\n") == []

    def test_parse_arp_command(self):
        entries = parse_arp_command(ARP_AN)
        assert ("10.0.0.1", "b8:27:eb:0:0:1") in entries
        assert all(ip != "10.0.0.12" for ip, _ in entries)

    @patch("discovery.arp.sys.platform", "linux")
    def test_read_table_from_proc(self, temp_data_dir):
        proc = temp_data_dir / "arp"
        proc.write_text(PROC_ARP)
        assert len(read_neighbor_table(str(proc))) == 4

    @patch("discovery.arp.sys.platform", "linux")
    def test_read_table_missing_proc(self, temp_data_dir):
        assert read_neighbor_table(str(temp_data_dir / "missing")) == []

    @patch("discovery.arp.sys.platform", "darwin")
    def test_read_table_via_arp_command(self):
        completed = subprocess.CompletedProcess(["arp", "-an"], 0, stdout=ARP_AN, stderr="")
        with patch("discovery.arp.safe_run", return_value=completed):
            assert ("10.0.0.1", "b8:27:eb:0:0:1") in read_neighbor_table()

    @patch("discovery.arp.sys.platform", "darwin")
    def test_read_table_arp_unavailable(self):
        with patch("discovery.arp.safe_run", side_effect=SubprocessError("not found")):
            assert read_neighbor_table() == []


class TestArpEnricher:
    """Tests for applying neighbor entries to the registry."""

    def _enricher(self, registry, subnet="10.0.0"):
        return ArpEnricher(registry, subnet, table_reader=lambda: parse_proc_arp(PROC_ARP))

    def test_passive_device_created_online(self, registry):
        """A host that answered no probe but is in the table is added."""
        created = self._enricher(registry).enrich()
        device = registry.get("10.0.0.5")
        assert device is not None
        assert device.is_online is True
        assert device.last_seen is not None
        assert device.mac == "aa:bb:cc:dd:ee:ff"
        assert device.manufacturer == ""
        assert created == 2

    def test_vendor_attached_to_known_device(self, registry):
        registry.upsert("10.0.0.1", hostname="router.lan", is_online=True)
        self._enricher(registry).enrich()
        device = registry.get("10.0.0.1")
        assert device.manufacturer == "Raspberry Pi"
        assert device.hostname == "router.lan"

    def test_known_device_keeps_online_state(self, registry):
        registry.upsert("10.0.0.1", is_online=False)
        self._enricher(registry).enrich()
        assert registry.get("10.0.0.1").is_online is False

    def test_incomplete_entries_skipped(self, registry):
        self._enricher(registry).enrich()
        assert not registry.contains("10.0.0.9")

    def test_other_subnets_ignored(self, registry):
        self._enricher(registry).enrich()
        assert not registry.contains("192.168.7.4")

    def test_prefix_match_is_exact(self, registry):
        """10.0.0 must not match 10.0.01.x style lookalikes."""
        enricher = ArpEnricher(registry, "10.0.0",
                               table_reader=lambda: [("10.0.01.5", "aa:bb:cc:dd:ee:01")])
        assert enricher.enrich() == 0
        assert len(registry) == 0

    def test_second_pass_creates_nothing(self, registry):
        enricher = self._enricher(registry)
        enricher.enrich()
        assert enricher.enrich() == 0
