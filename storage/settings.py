"""Application configuration file for HomeNet.

The configuration is a JSON document. A missing file is created with the
defaults; fields left empty in an existing file fall back to the defaults.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from config import GATEKEEPER, INTERVALS, STORAGE, get_logger
from config.exceptions import ConfigurationError

logger = get_logger(__name__)


@dataclass
class AppConfig:
    """Settings consumed by the discovery pipeline and the DNS gatekeeper."""
    subnet: str = ""  # e.g. "192.168.1"; empty = auto-detect
    upstream_dns: str = GATEKEEPER.DEFAULT_UPSTREAM
    dns_port: str = str(GATEKEEPER.DEFAULT_PORT)
    resolver_mode: str = GATEKEEPER.DEFAULT_MODE  # "udp" or "doh"
    doh_url: str = GATEKEEPER.DEFAULT_DOH_URL
    block_list: List[str] = field(default_factory=lambda: list(GATEKEEPER.DEFAULT_BLOCK_LIST))
    log_file: str = STORAGE.LOG_FILE
    devices_file: str = STORAGE.DEVICES_FILE
    scan_interval: float = INTERVALS.SCAN_SECONDS

    def to_dict(self) -> dict:
        return {
            "subnet": self.subnet,
            "upstream_dns": self.upstream_dns,
            "dns_port": self.dns_port,
            "resolver_mode": self.resolver_mode,
            "doh_url": self.doh_url,
            "block_list": list(self.block_list),
            "log_file": self.log_file,
            "devices_file": self.devices_file,
            "scan_interval": self.scan_interval,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        defaults = cls()
        block_list = data.get("block_list")
        return cls(
            subnet=data.get("subnet") or "",
            upstream_dns=data.get("upstream_dns") or defaults.upstream_dns,
            dns_port=str(data.get("dns_port") or defaults.dns_port),
            resolver_mode=(data.get("resolver_mode") or defaults.resolver_mode).lower(),
            doh_url=data.get("doh_url") or defaults.doh_url,
            block_list=list(block_list) if block_list is not None else defaults.block_list,
            log_file=data.get("log_file") or defaults.log_file,
            devices_file=data.get("devices_file") or defaults.devices_file,
            scan_interval=float(data.get("scan_interval") or defaults.scan_interval),
        )

    @property
    def port(self) -> int:
        try:
            port = int(self.dns_port)
        except ValueError as e:
            raise ConfigurationError("Invalid DNS port", {"dns_port": self.dns_port}) from e
        if not 0 <= port <= 65535:
            raise ConfigurationError("DNS port out of range", {"dns_port": self.dns_port})
        return port

    @property
    def upstream_address(self) -> Tuple[str, int]:
        """Upstream resolver as (host, port); port defaults to 53."""
        return parse_host_port(self.upstream_dns, default_port=53)

    def validate(self) -> None:
        """Raise ConfigurationError for settings the core cannot run with."""
        if self.resolver_mode not in GATEKEEPER.MODES:
            raise ConfigurationError(
                "Unknown resolver mode",
                {"resolver_mode": self.resolver_mode, "allowed": list(GATEKEEPER.MODES)},
            )
        if self.resolver_mode == "doh" and not self.doh_url.startswith("https://"):
            raise ConfigurationError("DoH endpoint must be an https:// URL", {"doh_url": self.doh_url})
        if self.scan_interval <= 0:
            raise ConfigurationError("Scan interval must be positive", {"scan_interval": self.scan_interval})
        # Both properties raise on malformed values
        _ = self.port, self.upstream_address


def parse_host_port(value: str, default_port: int) -> Tuple[str, int]:
    """Split "host:port" (or "[v6]:port", or a bare host) into a tuple."""
    value = value.strip()
    if value.startswith("["):
        host, _, rest = value[1:].partition("]")
        port_text = rest.lstrip(":")
    elif value.count(":") == 1:
        host, _, port_text = value.partition(":")
    else:
        host, port_text = value, ""

    if not host:
        raise ConfigurationError("Missing upstream host", {"upstream_dns": value})
    try:
        port = int(port_text) if port_text else default_port
    except ValueError as e:
        raise ConfigurationError("Invalid upstream port", {"upstream_dns": value}) from e
    return host, port


def load_config(path: Union[str, Path]) -> AppConfig:
    """Load configuration from `path`, creating it with defaults if missing.

    Raises:
        ConfigurationError: If the file exists but is not valid JSON, or
            the defaults cannot be written.
    """
    path = Path(path)
    if not path.exists():
        config = AppConfig()
        save_config(config, path)
        logger.info(f"Created default configuration at {path}")
        return config

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid configuration file: {e}", {"path": str(path)}) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration: {e}", {"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object", {"path": str(path)})

    return AppConfig.from_dict(data)


def save_config(config: AppConfig, path: Union[str, Path]) -> None:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
    except OSError as e:
        raise ConfigurationError(f"Cannot write configuration: {e}", {"path": str(path)}) from e
