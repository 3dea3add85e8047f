"""
Booking workflow entry point.

Builds the state machine from configuration (delivery backend, timeouts)
and either runs the offline console demo or prints the service catalogue
and configuration summary.

Usage:
    Console demo:  python main.py console [standard|verified|blocked|reassign]
    Summary:       python main.py
"""

import asyncio
import logging
import sys
from typing import Optional

from bookflow.config import settings
from bookflow.delivery import build_gateway
from bookflow.repository.base import BookingRepository
from bookflow.repository.memory import InMemoryRepository
from bookflow.tools.pricing import format_money
from bookflow.tools.services import get_services_by_category
from bookflow.workflow.notifications import NotificationDispatcher
from bookflow.workflow.state_machine import BookingStateMachine

logger = logging.getLogger(__name__)


def build_machine(repository: Optional[BookingRepository] = None) -> BookingStateMachine:
    """Wire a state machine with the configured delivery gateway."""
    gateway = build_gateway(settings.delivery)
    return BookingStateMachine(
        repository or InMemoryRepository(),
        dispatcher=NotificationDispatcher(gateway),
        config=settings.workflow,
    )


async def _summarise() -> None:
    machine = build_machine()
    await machine.refresh()
    logger.info(
        "%s ready: delivery=%s, deposit=%.0f%%, timeout=%.1fs",
        settings.platform_name,
        settings.delivery.backend,
        settings.pricing.deposit_percentage * 100,
        settings.workflow.request_timeout_sec,
    )
    for category, services in get_services_by_category().items():
        print(category)
        for service in services:
            unit = "/hr" if service.rate_type.value == "per_hour" else ""
            print(f"  {service.name:<28} {format_money(service.rate)}{unit}")


def _run_console_mode(scenario: str) -> None:
    """Start the offline console demo (no credentials required)."""
    from console_demo import ConsoleSession

    asyncio.run(ConsoleSession(scenario).run())


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode(sys.argv[2] if len(sys.argv) > 2 else "standard")
    else:
        asyncio.run(_summarise())
