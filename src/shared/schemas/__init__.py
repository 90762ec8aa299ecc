
from .ticket import (
    ListTicketsRequest,
    ContactOut,
    QueueOut,
    WhatsappOut,
    MatchedMessageOut,
    TicketOut,
    TicketListResponse,
)

__all__ = [
    'ListTicketsRequest',
    'ContactOut',
    'QueueOut',
    'WhatsappOut',
    'MatchedMessageOut',
    'TicketOut',
    'TicketListResponse',
]
