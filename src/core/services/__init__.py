"""Service layer for the ticket listing API."""

from .access_policy import QueueAccessPolicy
from .user_services import UserManager
from .ticket_listing import TicketQueryBuilder, list_tickets

__all__ = [
    "QueueAccessPolicy",
    "UserManager",
    "TicketQueryBuilder",
    "list_tickets",
]
