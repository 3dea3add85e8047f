from typing import Optional

from bookflow.config import DeliveryConfig, settings
from bookflow.delivery.gateway import DeliveryGateway, LoggingGateway
from bookflow.delivery.twilio import TwilioGateway


def build_gateway(config: Optional[DeliveryConfig] = None) -> DeliveryGateway:
    """Create the gateway selected by DELIVERY_BACKEND."""
    cfg = config or settings.delivery
    if cfg.backend == "twilio":
        return TwilioGateway(cfg)
    return LoggingGateway()


__all__ = ["DeliveryGateway", "LoggingGateway", "TwilioGateway", "build_gateway"]
