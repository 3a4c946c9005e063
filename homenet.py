#!/usr/bin/env python3
"""
HomeNet - home network discovery and DNS gatekeeper.
Finds devices on the local /24, alerts on newcomers, and filters DNS
queries against a blocklist before forwarding them upstream.
"""
import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from app.controller import AppController, format_device, format_status
from app.dependencies import create_dependencies, resolve_data_path
from config import INTERVALS, STORAGE, get_logger, setup_logging
from config.exceptions import ConfigurationError, WakeOnLanError
from service.wol import wake
from storage.settings import load_config

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="homenet",
        description="Home network device discovery and DNS gatekeeper.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"configuration file (default: ~/{STORAGE.DATA_DIR_NAME}/{STORAGE.CONFIG_FILE})",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path.home() / STORAGE.DATA_DIR_NAME,
        help="directory for the device snapshot and log file",
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--wake", metavar="MAC", help="send a Wake-on-LAN packet and exit")
    parser.add_argument(
        "--devices", action="store_true",
        help="print the device table with every status update",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    data_dir = args.data_dir.expanduser()

    if args.wake:
        setup_logging(data_dir=data_dir, debug=args.debug, log_to_file=False)
        try:
            wake(args.wake)
        except WakeOnLanError as e:
            print(f"Wake-on-LAN failed: {e}", file=sys.stderr)
            return 1
        print(f"Magic packet sent to {args.wake}")
        return 0

    config_path = args.config or data_dir / STORAGE.CONFIG_FILE
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    log_path = resolve_data_path(data_dir, config.log_file)
    setup_logging(data_dir=log_path.parent, debug=args.debug, log_file=log_path.name)
    logger.info("HomeNet starting...")

    try:
        deps = create_dependencies(config, data_dir=data_dir)
    except ConfigurationError as e:
        logger.critical(f"Cannot start: {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    controller = AppController(deps)
    stop_event = threading.Event()

    def signal_handler(signum, frame):
        """Handle SIGTERM/SIGINT by ending the status loop."""
        logger.info(f"Received signal {signum}, shutting down...")
        stop_event.set()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        controller.start()
        if controller.gatekeeper_error is not None:
            print(f"DNS gatekeeper disabled: {controller.gatekeeper_error}", file=sys.stderr)

        while not stop_event.wait(INTERVALS.STATUS_REFRESH_SECONDS):
            status = controller.update()
            for alert in status.alerts:
                print(alert)
            if args.devices:
                for device in status.devices:
                    print(format_device(device))
            print(format_status(status))
    except Exception as e:
        logger.critical(f"Application crashed: {e}", exc_info=True)
        raise
    finally:
        controller.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
