#!/usr/bin/env python3
"""
Relay controller - bridges the emulated monitor, actuator and gateway devices.

Connects to each device's TCP port on the loopback interface, starts the
relay threads and hands the terminal to the Commander shell.

Configuration may be loaded from a JSON file; command line flags win:
{
    "host": "127.0.0.1",
    "monitor_port": 10010,
    "actuator_port": 10020,
    "gateway_port": 10030,
    "preamble_size": 15,
    "response_size": 54,
    "log_level": "INFO"
}

Usage:
    python3 -m controller.server -m 10010 -a 10020 -g 10030
    python3 -m controller.server --config config/controller_config.json
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from controller.relay import COAP_RESPONSE_SIZE, PREAMBLE_SIZE, RelayController
from controller.shell import CommandShell
from transport import SocketError, StreamSocket
from utils.faults import FaultSeverity, RelayFault

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
EXIT_DEFECT = 2
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def load_config(config_path: str) -> dict:
    """Load controller configuration from JSON file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        return json.load(f)


def resolve_settings(args: argparse.Namespace, config: dict) -> dict:
    """Merge command line flags over config file values."""
    def pick(flag, key, default=None):
        return flag if flag is not None else config.get(key, default)

    return {
        "host": pick(args.host, "host", DEFAULT_HOST),
        "monitor_port": pick(args.monitor, "monitor_port", 0),
        "actuator_port": pick(args.actuator, "actuator_port", 0),
        "gateway_port": pick(args.gateway, "gateway_port", 0),
        "preamble_size": config.get("preamble_size", PREAMBLE_SIZE),
        "response_size": config.get("response_size", COAP_RESPONSE_SIZE),
        "log_level": str(pick(args.log_level, "log_level", "INFO")).upper(),
    }


def connect(host: str, port: int) -> StreamSocket | None:
    """Open a connection to a device port, or None if the port is 0."""
    if not port:
        return None
    return StreamSocket((host, 0), (host, port))


def abort_on_defect(fault: RelayFault) -> None:
    """Fault handler that terminates the process on protocol defects."""
    if fault.severity is FaultSeverity.DEFECT:
        logger.critical(f"Aborting: {fault}")
        os._exit(EXIT_DEFECT)


def run_controller(settings: dict) -> int:
    """Connect to the devices, start relaying and run the shell."""
    host = settings["host"]
    ports = (settings["monitor_port"], settings["actuator_port"], settings["gateway_port"])

    if not any(ports):
        logger.error("Must provide at least one port number.")
        return 1

    sockets: list[StreamSocket | None] = []
    try:
        for port in ports:
            sockets.append(connect(host, port))
    except SocketError as e:
        logger.error(str(e))
        for sock in sockets:
            if sock is not None:
                sock.close()
        return 1

    monitor, actuator, gateway = sockets
    controller = RelayController(
        monitor,
        actuator,
        gateway,
        preamble_size=settings["preamble_size"],
        response_size=settings["response_size"],
        on_fault=abort_on_defect,
    )
    controller.start()
    CommandShell(controller).run()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Relay controller for the soil monitor, actuator and gateway devices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-m", "--monitor", type=int, help="Monitor device port")
    parser.add_argument("-a", "--actuator", type=int, help="Actuator device port")
    parser.add_argument("-g", "--gateway", type=int, help="Gateway device port")
    parser.add_argument("--host", help=f"Device host (default: {DEFAULT_HOST})")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args(argv)

    config: dict = {}
    if args.config:
        try:
            config = load_config(args.config)
        except FileNotFoundError as e:
            logging.basicConfig(level=logging.INFO)
            logger.error(str(e))
            return 1

    settings = resolve_settings(args, config)
    if settings["log_level"] not in LOG_LEVELS:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid log_level \"{settings['log_level']}\". Choose from {', '.join(LOG_LEVELS)}.")
        return 1

    logging.basicConfig(
        level=getattr(logging, settings["log_level"]),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    return run_controller(settings)


if __name__ == "__main__":
    sys.exit(main())
