"""Safe subprocess execution.

Commands are validated against ALLOWED_SUBPROCESS_COMMANDS and always run
without a shell. Used for platform tools such as `arp -an` where no
kernel file can be read directly.

Usage:
    from config.subprocess_runner import safe_run

    result = safe_run(['arp', '-an'])
    if result.returncode == 0:
        print(result.stdout)
"""

# nosec B404 - subprocess usage is required and validated via allowlist
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from config.constants import ALLOWED_SUBPROCESS_COMMANDS, INTERVALS
from config.exceptions import SubprocessError
from config.logging_config import get_logger

logger = get_logger(__name__)


def safe_run(
    cmd: List[str], timeout: Optional[float] = None, check_allowed: bool = True
) -> subprocess.CompletedProcess:
    """Run a subprocess command with safety checks.

    Args:
        cmd: Command and arguments as list.
        timeout: Command timeout in seconds.
        check_allowed: If True, validate command is in allowlist.

    Returns:
        subprocess.CompletedProcess with text output.

    Raises:
        SubprocessError: If command is not allowed, missing, or times out.
    """
    if not cmd:
        raise SubprocessError("Empty command", command=cmd)

    base_cmd = Path(cmd[0]).name
    if check_allowed and base_cmd not in ALLOWED_SUBPROCESS_COMMANDS:
        raise SubprocessError(
            f"Command not in allowlist: {base_cmd}",
            command=cmd,
            details={"allowed": sorted(ALLOWED_SUBPROCESS_COMMANDS)},
        )

    timeout = timeout or INTERVALS.SUBPROCESS_TIMEOUT_SECONDS
    start_time = time.time()

    try:
        result = subprocess.run(  # nosec B603 - Commands validated via allowlist
            cmd, capture_output=True, text=True, timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        raise SubprocessError(
            f"Command timed out after {timeout}s", command=cmd, details={"timeout": timeout}
        ) from e
    except FileNotFoundError as e:
        raise SubprocessError(f"Command not found: {cmd[0]}", command=cmd) from e

    duration_ms = (time.time() - start_time) * 1000
    logger.debug(f"Subprocess: {' '.join(cmd)} -> rc={result.returncode}, {duration_ms:.1f}ms")
    return result
