from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime


class ListTicketsRequest(BaseModel):
    """Parameters accepted by the ticket listing service.

    Flags and the page number arrive as optional strings the way the web
    client sends them; only the literal ``"true"`` enables a flag.
    """

    user_id: int
    search_param: Optional[str] = None
    page_number: Optional[str] = "1"
    status: Optional[str] = None
    date: Optional[str] = None
    show_all: Optional[str] = None
    with_unread_messages: Optional[str] = None
    queue_ids: List[int] = Field(default_factory=list)

    @field_validator("search_param", "status", "date", mode="before")
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("queue_ids", mode="before")
    def _none_to_empty(cls, v):
        return [] if v is None else v

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "user_id": 7,
                    "search_param": "maria",
                    "page_number": "1",
                    "status": "open",
                    "show_all": "false",
                    "queue_ids": [3, 4],
                }
            ]
        },
    )


class ContactOut(BaseModel):
    id: int
    name: str
    number: str
    profile_pic_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class QueueOut(BaseModel):
    id: int
    name: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class WhatsappOut(BaseModel):
    name: str

    model_config = ConfigDict(from_attributes=True)


class MatchedMessageOut(BaseModel):
    id: int
    body: str

    model_config = ConfigDict(from_attributes=True)


class TicketOut(BaseModel):
    id: int
    status: str
    unread_messages: int
    last_message: Optional[str] = None
    contact_id: int
    user_id: Optional[int] = None
    queue_id: Optional[int] = None
    whatsapp_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    contact: Optional[ContactOut] = None
    queue: Optional[QueueOut] = None
    whatsapp: Optional[WhatsappOut] = None
    messages: Optional[List[MatchedMessageOut]] = None

    model_config = ConfigDict(from_attributes=True)


class TicketListResponse(BaseModel):
    tickets: List[TicketOut]
    count: int
    has_more: bool = Field(serialization_alias="hasMore")

    model_config = ConfigDict(populate_by_name=True)
