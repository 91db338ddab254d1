from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LineSource(BaseModel):
    type: Optional[str] = None  # user, group, room
    userId: Optional[str] = None
    groupId: Optional[str] = None
    roomId: Optional[str] = None

    def sender_id(self) -> Optional[str]:
        return self.userId or self.groupId or self.roomId


class LineMessage(BaseModel):
    id: Optional[str] = None
    type: Optional[str] = None  # text, image, sticker, ...
    text: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class LineEvent(BaseModel):
    type: Optional[str] = None  # message, follow, unfollow, postback, ...
    replyToken: Optional[str] = None
    timestamp: Optional[int] = None
    source: Optional[LineSource] = None
    message: Optional[LineMessage] = None
    webhookEventId: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    def is_text_message(self) -> bool:
        return self.type == "message" and self.message is not None and self.message.type == "text"


class LineWebhookRequest(BaseModel):
    destination: Optional[str] = None
    events: Optional[list[Any]] = Field(default_factory=list)

    @field_validator("events", mode="before")
    @classmethod
    def null_events_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class InboundEvent(BaseModel):
    """A text event the relay core can act on."""

    sender_id: str
    text: str
    reply_token: str
    message_id: Optional[str] = None

    @classmethod
    def from_line_event(cls, event: LineEvent) -> Optional["InboundEvent"]:
        """None when the event is not a text message or lacks text, reply token or sender."""
        if not event.is_text_message():
            return None
        text = event.message.text or ""
        reply_token = event.replyToken or ""
        sender_id = event.source.sender_id() if event.source else None
        if not text.strip() or not reply_token or not sender_id:
            return None
        return cls(
            sender_id=sender_id,
            text=text,
            reply_token=reply_token,
            message_id=event.message.id or None,
        )
