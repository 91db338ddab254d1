from relay.schemas.webhook import InboundEvent, LineEvent, LineWebhookRequest

__all__ = ["InboundEvent", "LineEvent", "LineWebhookRequest"]
