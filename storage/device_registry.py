"""Concurrency-safe device registry with JSON snapshot persistence."""
import copy
import ipaddress
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from config import get_logger
from config.exceptions import StorageError
from config.rwlock import ReadWriteLock
from discovery.device import Device

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _ip_sort_key(ip: str) -> Tuple[int, Any]:
    try:
        return 0, int(ipaddress.ip_address(ip))
    except ValueError:
        return 1, ip


class DeviceRegistry:
    """Maps IP address -> Device.

    All access goes through a single reader/writer lock guarding the whole
    map. Readers get independent copies, so callers never hold the lock
    while iterating. Devices are never removed.
    """

    def __init__(self) -> None:
        self._devices: Dict[str, Device] = {}
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._devices)

    def contains(self, ip: str) -> bool:
        with self._lock.read_locked():
            return ip in self._devices

    def get(self, ip: str) -> Optional[Device]:
        """Return a copy of the device at `ip`, or None."""
        with self._lock.read_locked():
            device = self._devices.get(ip)
            return copy.deepcopy(device) if device else None

    def get_or_create(
        self, ip: str, factory: Optional[Callable[[], Device]] = None
    ) -> Tuple[Device, bool]:
        """Return (copy of device, created) creating it from `factory` if missing."""
        with self._lock.write_locked():
            created = ip not in self._devices
            if created:
                device = factory() if factory else Device(ip=ip)
                device.ip = ip
                self._devices[ip] = device
            return copy.deepcopy(self._devices[ip]), created

    def upsert(self, ip: str, /, **fields: Any) -> bool:
        """Set fields on the device at `ip`, creating it if needed.

        Returns:
            True if the device was created by this call.
        """
        if "ip" in fields:
            raise ValueError("Device.ip is immutable")

        def apply(device: Device) -> None:
            for name, value in fields.items():
                setattr(device, name, value)

        return bool(self.update(ip, apply, factory=lambda: Device(ip=ip)))

    def update(
        self,
        ip: str,
        mutator: Callable[[Device], None],
        factory: Optional[Callable[[], Device]] = None,
    ) -> Optional[bool]:
        """Apply `mutator` to the device at `ip` under the write lock.

        Args:
            ip: Registry key.
            mutator: Called with the live Device; must not block.
            factory: Builds the device when `ip` is unknown. Without one,
                an unknown `ip` is left alone.

        Returns:
            True if created, False if an existing device was updated,
            None if the device was missing and no factory was given.
        """
        with self._lock.write_locked():
            device = self._devices.get(ip)
            created = False
            if device is None:
                if factory is None:
                    return None
                device = factory()
                device.ip = ip
                self._devices[ip] = device
                created = True
            mutator(device)
            device.ip = ip
            return created

    def snapshot(self) -> List[Device]:
        """Return independent copies of all devices, ordered by IP."""
        with self._lock.read_locked():
            devices = copy.deepcopy(list(self._devices.values()))
        return sorted(devices, key=lambda d: _ip_sort_key(d.ip))

    # ========================================================================
    # Persistence
    # ========================================================================

    def load(self, path: PathLike) -> int:
        """Load a persisted snapshot; every loaded device starts offline.

        A missing file is not an error. An unreadable or malformed file is
        logged and leaves the registry unchanged.

        Returns:
            Number of devices loaded.
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"No device snapshot at {path}, starting fresh")
            return 0

        try:
            with open(path, encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load device snapshot {path}: {e}")
            return 0

        if not isinstance(raw, dict):
            logger.warning(f"Device snapshot {path} is not a JSON object, ignoring")
            return 0

        loaded: Dict[str, Device] = {}
        for ip, data in raw.items():
            if not isinstance(data, dict):
                logger.debug(f"Skipping malformed snapshot entry for {ip}")
                continue
            device = Device.from_dict({**data, "ip": ip})
            device.is_online = False
            loaded[ip] = device

        with self._lock.write_locked():
            self._devices.update(loaded)

        logger.info(f"Loaded {len(loaded)} devices from {path}")
        return len(loaded)

    def save(self, path: PathLike) -> bool:
        """Persist the registry; failures are logged, never raised.

        Returns:
            True if the snapshot was written.
        """
        path = Path(path)
        with self._lock.read_locked():
            payload = {ip: device.to_dict() for ip, device in self._devices.items()}

        try:
            self._write_atomic(path, payload)
        except StorageError as e:
            logger.error(f"Error saving devices: {e}")
            return False

        logger.debug(f"Saved {len(payload)} devices to {path}")
        return True

    @staticmethod
    def _write_atomic(path: Path, payload: Dict[str, Any]) -> None:
        """Write JSON to a temp file beside `path`, then rename it into place."""
        temp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2)
            os.replace(temp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if temp_name and os.path.exists(temp_name):
                os.unlink(temp_name)
            raise StorageError(f"Failed to save devices: {e}", {"path": str(path)}) from e
