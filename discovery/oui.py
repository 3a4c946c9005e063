"""MAC prefix to vendor lookup.

A small built-in OUI table covering common home-network vendors. The full
IEEE registry is several megabytes; unknown prefixes resolve to "".
"""
from typing import Dict

OUI_VENDORS: Dict[str, str] = {
    "DC:A6:32": "Raspberry Pi",
    "B8:27:EB": "Raspberry Pi",
    "D8:3A:DD": "Raspberry Pi",
    "00:1A:2B": "Cisco",
    "F0:9E:63": "Apple",
    "BC:D1:D3": "Apple",
    "00:03:93": "Apple",
    "00:17:F2": "Apple",
    "AC:29:3A": "Canon",
    "44:38:39": "Cumulus",
    "50:E5:49": "Gigabyte",
    "00:11:32": "Synology",
    "24:8D:76": "Espressif",
    "84:F3:EB": "Espressif",
    "00:50:56": "VMware",
    "00:0C:29": "VMware",
    "52:54:00": "QEMU/KVM",
}


def normalize_mac(mac_address: str) -> str:
    """Normalize a MAC address to XX:XX:XX:XX:XX:XX format."""
    mac_clean = mac_address.strip().upper().replace("-", ":").replace(".", ":")
    parts = mac_clean.split(":")
    if len(parts) == 6:
        return ":".join(p.zfill(2) for p in parts)
    return mac_clean


def lookup_vendor(mac_address: str) -> str:
    """Look up the vendor for a MAC address from its first three octets."""
    if not mac_address:
        return ""
    prefix = normalize_mac(mac_address)[:8]
    return OUI_VENDORS.get(prefix, "")
