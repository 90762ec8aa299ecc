from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.services.access_policy import QueueAccessPolicy
from src.core.services.ticket_listing import list_tickets
from src.shared.schemas import ListTicketsRequest, TicketListResponse

from .deps import get_access_policy, get_acting_user_id, get_db

logger = logging.getLogger(__name__)

# ─── Tickets Router ───────────────────────────────────────────────────────────

tickets_router = APIRouter(prefix="/tickets", tags=["tickets"])


@tickets_router.get(
    "",
    response_model=TicketListResponse,
    operation_id="list_tickets",
)
async def list_tickets_endpoint(
    search_param: Optional[str] = Query(None, alias="searchParam"),
    page_number: Optional[str] = Query("1", alias="pageNumber"),
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    show_all: Optional[str] = Query(None, alias="showAll"),
    with_unread_messages: Optional[str] = Query(None, alias="withUnreadMessages"),
    queue_ids: List[int] = Query([], alias="queueIds"),
    user_id: int = Depends(get_acting_user_id),
    policy: QueueAccessPolicy = Depends(get_access_policy),
    db: AsyncSession = Depends(get_db),
) -> TicketListResponse:
    """List the tickets visible to the acting user, newest activity first."""
    request = ListTicketsRequest(
        user_id=user_id,
        search_param=search_param,
        page_number=page_number,
        status=status,
        date=date,
        show_all=show_all,
        with_unread_messages=with_unread_messages,
        queue_ids=queue_ids,
    )
    result = await list_tickets(db, request, policy)
    logger.info(
        "User %s listed %d of %d tickets (page %s)",
        user_id,
        len(result.tickets),
        result.count,
        page_number,
    )
    return result


__all__ = ["tickets_router"]
