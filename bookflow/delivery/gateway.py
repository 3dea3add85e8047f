"""
Outbound delivery gateway interface.

Gateways report success as a bool. The workflow treats ``False`` and
raised exceptions alike: the failure is logged and the transition that
produced the message stands.
"""

import logging
from abc import ABC, abstractmethod

from bookflow.schemas.communication_schema import Channel, OutboundMessage

logger = logging.getLogger(__name__)


class DeliveryGateway(ABC):
    """Sends SMS / WhatsApp messages to clients and performers."""

    @abstractmethod
    async def send(self, address: str, body: str, channel: Channel) -> bool:
        ...

    async def send_message(self, message: OutboundMessage) -> bool:
        return await self.send(message.address, message.body, message.channel)


class LoggingGateway(DeliveryGateway):
    """Gateway that only logs. Used when no provider is configured."""

    def __init__(self) -> None:
        self.sent: list[OutboundMessage] = []

    async def send(self, address: str, body: str, channel: Channel) -> bool:
        self.sent.append(OutboundMessage(address=address, body=body, channel=channel))
        logger.info("[%s] -> %s: %s", channel.value, address, body.splitlines()[0] if body else "")
        return True
