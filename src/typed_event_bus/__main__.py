"""Command-line entry point for the typed event bus.

Run a short delivery demonstration, or print the effective configuration::

    python -m typed_event_bus
    python -m typed_event_bus --config overlay.yaml --debug
    python -m typed_event_bus --show-config
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

import yaml

from typed_event_bus.bus import EventBus, create_bus, listener
from typed_event_bus.config import get_typed_config
from typed_event_bus.domain.events import CancellableEvent

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="typed_event_bus",
        description="Typed Event Bus -- in-process priority dispatch demo",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Overlay YAML file merged over config/default.yaml.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug mode with verbose logging.",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        default=False,
        help="Print the merged configuration as YAML and exit.",
    )
    return parser


def _configure_logging(settings: dict[str, Any], debug: bool) -> None:
    """Set up root logger.

    Parameters
    ----------
    settings:
        The ``logging`` configuration section.
    debug:
        If True, force DEBUG level regardless of configuration.
    """
    level_name = str(settings.get("level", "INFO")).upper()
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format=settings.get("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s"),
        datefmt=settings.get("datefmt", "%Y-%m-%d %H:%M:%S"),
    )


# ---------------------------------------------------------------------------
# Demonstration
# ---------------------------------------------------------------------------

class OrderPlaced(CancellableEvent):
    """Sample event used by the demonstration run."""

    def __init__(self, order_id: str, amount: float) -> None:
        self.order_id = order_id
        self.amount = amount


class OrderDesk:
    """Sample listener class exercising priorities and cancellation."""

    def __init__(self, limit: float) -> None:
        self.limit = limit
        self.log: list[str] = []

    @listener(priority=10)
    def check_limit(self, event: OrderPlaced) -> None:
        self.log.append("check_limit")
        if event.amount > self.limit:
            event.cancel()

    @listener()
    def fulfil(self, event: OrderPlaced) -> None:
        self.log.append("fulfil")

    @listener(priority=-10, ignore_cancellation=True)
    def audit(self, event: OrderPlaced) -> None:
        self.log.append("audit")


def run_demo(bus: EventBus) -> dict[str, tuple[bool, list[str]]]:
    """Register an :class:`OrderDesk` and post two orders.

    Returns
    -------
    dict[str, tuple[bool, list[str]]]
        Per order id, whether it was cancelled and the listeners called.
    """
    desk = OrderDesk(limit=100.0)
    bus.register_listener(desk)
    outcome: dict[str, tuple[bool, list[str]]] = {}
    for order in (OrderPlaced("A-1", 25.0), OrderPlaced("A-2", 250.0)):
        desk.log = []
        cancelled = bus.post_is_cancelled(order)
        outcome[order.order_id] = (cancelled, desk.log)
        logger.info(
            "Order %s (%.2f): cancelled=%s, calls=%s",
            order.order_id, order.amount, cancelled, desk.log,
        )
    return outcome


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run the demonstration."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_typed_config(overlay_path=args.config)

    if args.show_config:
        sys.stdout.write(yaml.safe_dump(config.data, sort_keys=True))
        return 0

    _configure_logging(config.section("logging"), args.debug)
    bus = create_bus(config)
    logger.info("Bus ready (bucket_factory=%s)", config.get("bus.bucket_factory", "list"))
    run_demo(bus)
    return 0


if __name__ == "__main__":
    sys.exit(main())
