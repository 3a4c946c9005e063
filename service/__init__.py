"""Auxiliary network services."""

from .wol import build_magic_packet, normalize_mac, wake

__all__ = ["build_magic_packet", "normalize_mac", "wake"]
