"""
Twilio SMS / WhatsApp gateway.

Posts to the Twilio Messages REST endpoint with httpx. Phone numbers
must be in E.164 format; anything else is refused locally.
"""

import logging
from typing import Optional

import httpx

from bookflow.config import DeliveryConfig
from bookflow.delivery.gateway import DeliveryGateway
from bookflow.schemas.communication_schema import Channel

logger = logging.getLogger(__name__)


class TwilioGateway(DeliveryGateway):
    def __init__(
        self,
        config: DeliveryConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def configured(self) -> bool:
        cfg = self._config
        return bool(cfg.twilio_account_sid and cfg.twilio_auth_token and cfg.twilio_from_number)

    def _address(self, number: str, channel: Channel) -> str:
        return f"whatsapp:{number}" if channel == Channel.WHATSAPP else number

    async def send(self, address: str, body: str, channel: Channel) -> bool:
        """
        Send one message via Twilio.

        Returns:
            True if Twilio accepted the message, False otherwise.
        """
        if not self.configured:
            logger.warning("Twilio not configured. %s to %s not sent.", channel.value, address)
            return False
        if not address:
            logger.debug("No address provided for %s message", channel.value)
            return False
        if not address.startswith("+"):
            logger.warning("Phone number not in E.164 format: %s", address)
            return False

        cfg = self._config
        data = {
            "To": self._address(address, channel),
            "From": self._address(cfg.twilio_from_number, channel),
            "Body": body,
        }
        url = f"{cfg.twilio_api_base}/Accounts/{cfg.twilio_account_sid}/Messages.json"

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=cfg.send_timeout_sec
            ) as client:
                response = await client.post(
                    url,
                    data=data,
                    auth=(cfg.twilio_account_sid, cfg.twilio_auth_token),
                )
        except httpx.HTTPError as exc:
            logger.error("Twilio request failed for %s: %s", address, exc)
            return False

        if response.status_code in (200, 201):
            sid = response.json().get("sid")
            logger.info("%s sent to %s (sid=%s)", channel.value, address, sid)
            return True

        logger.error(
            "Twilio rejected %s to %s: %s %s",
            channel.value, address, response.status_code, response.text,
        )
        return False
