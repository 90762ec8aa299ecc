"""Paginated ticket listing scoped by queue membership and ownership.

The listing predicate is an ordered list of named clauses that are AND-ed
together::

    queue_scope AND ownership AND status AND date_range AND search AND unread

``ownership`` (owner OR pending) and ``search`` (contact name OR contact
number OR message body) are the only OR-groups. Clauses that do not apply to
a request are left out of the list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import Select, and_, false, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from config import DEFAULT_TIMEZONE, TICKETS_PAGE_SIZE
from src.core.repositories.models import Contact, Message, Ticket, User
from src.core.services.access_policy import QueueAccessPolicy
from src.core.services.user_services import UserManager
from src.shared.exceptions import DatabaseError, ValidationError
from src.shared.schemas.ticket import (
    ListTicketsRequest,
    MatchedMessageOut,
    TicketListResponse,
    TicketOut,
)
from src.shared.utils.date_format import day_bounds, parse_calendar_day, to_epoch_ms

logger = logging.getLogger(__name__)

PENDING_STATUS = "pending"
_LIKE_ESCAPE = "\\"


def server_timezone(name: str = DEFAULT_TIMEZONE) -> tzinfo:
    if name.upper() in {"UTC", "GMT"}:
        return timezone.utc
    return ZoneInfo(name)


def _flag(value: Optional[str]) -> bool:
    return value == "true"


def _page(value: Optional[str]) -> int:
    if value is None or not str(value).strip():
        return 1
    try:
        page = int(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid page number", details=f"pageNumber={value!r}")
    if page < 1:
        raise ValidationError("Page number must be 1 or greater", details=f"pageNumber={value!r}")
    return page


def _like_pattern(term: str) -> str:
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _message_matches(pattern: str) -> ColumnElement[bool]:
    return func.lower(Message.body).like(pattern, escape=_LIKE_ESCAPE)


@dataclass(frozen=True)
class Clause:
    name: str
    expression: ColumnElement[bool]


@dataclass
class TicketQuery:
    """A built listing query: predicate clauses plus joins and the page window."""

    clauses: List[Clause] = field(default_factory=list)
    search_pattern: Optional[str] = None
    limit: int = TICKETS_PAGE_SIZE
    offset: int = 0

    @property
    def clause_names(self) -> List[str]:
        return [c.name for c in self.clauses]

    def matching_ids(self) -> Select:
        """Ids of every ticket matching the predicate, one row per ticket."""
        stmt = select(Ticket.id)
        if self.search_pattern is not None:
            # matched messages are an optional join; tickets without any
            # still qualify through the contact columns
            stmt = stmt.outerjoin(Contact, Ticket.contact_id == Contact.id).outerjoin(
                Message,
                and_(Message.ticket_id == Ticket.id, _message_matches(self.search_pattern)),
            )
        if self.clauses:
            stmt = stmt.where(and_(*(c.expression for c in self.clauses)))
        return stmt.distinct()

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.matching_ids().subquery())

    def page_statement(self) -> Select:
        return (
            select(Ticket)
            .where(Ticket.id.in_(self.matching_ids().correlate(None)))
            .options(
                selectinload(Ticket.contact),
                selectinload(Ticket.queue),
                selectinload(Ticket.whatsapp),
            )
            .order_by(Ticket.updated_at.desc(), Ticket.id.desc())
            .limit(self.limit)
            .offset(self.offset)
        )

    def matched_messages_statement(self, ticket_ids: Sequence[int]) -> Select:
        return (
            select(Message.id, Message.ticket_id, Message.body)
            .where(Message.ticket_id.in_(ticket_ids), _message_matches(self.search_pattern))
            .order_by(Message.id)
        )


class TicketQueryBuilder:
    """Build and run the listing query for one acting user."""

    def __init__(
        self,
        policy: QueueAccessPolicy,
        tz: Optional[tzinfo] = None,
        page_size: int = TICKETS_PAGE_SIZE,
    ) -> None:
        self.policy = policy
        self.tz = tz or server_timezone()
        self.page_size = page_size

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------
    def queue_clause(self, request: ListTicketsRequest, user: User) -> Optional[Clause]:
        scope = self.policy.queue_scope(user, request.queue_ids)
        if scope is None:
            return None
        if not scope:
            return Clause("queue_scope", false())
        return Clause("queue_scope", Ticket.queue_id.in_(scope))

    def ownership_clause(self, request: ListTicketsRequest, user: User) -> Optional[Clause]:
        if _flag(request.show_all):
            return None
        return Clause(
            "ownership",
            or_(Ticket.user_id == user.id, Ticket.status == PENDING_STATUS),
        )

    def status_clause(self, request: ListTicketsRequest) -> Optional[Clause]:
        if not request.status:
            return None
        return Clause("status", Ticket.status == request.status)

    def date_clause(self, request: ListTicketsRequest) -> Optional[Clause]:
        if not request.date:
            return None
        try:
            day = parse_calendar_day(request.date, self.tz)
        except ValueError:
            raise ValidationError("Invalid date", details=f"date={request.date!r}")
        start, end = day_bounds(day, self.tz)
        logger.debug("Date filter %s spans [%d, %d] ms", day, to_epoch_ms(start), to_epoch_ms(end))
        return Clause("date_range", Ticket.created_at.between(start, end))

    def search_clause(self, pattern: Optional[str]) -> Optional[Clause]:
        if pattern is None:
            return None
        return Clause(
            "search",
            or_(
                func.lower(Contact.name).like(pattern, escape=_LIKE_ESCAPE),
                Contact.number.like(pattern, escape=_LIKE_ESCAPE),
                _message_matches(pattern),
            ),
        )

    def unread_clause(self, request: ListTicketsRequest) -> Optional[Clause]:
        if not _flag(request.with_unread_messages):
            return None
        return Clause("unread", Ticket.unread_messages > 0)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------
    def build(self, request: ListTicketsRequest, user: User) -> TicketQuery:
        term = (request.search_param or "").lower().strip()
        pattern = _like_pattern(term) if term else None

        candidates = [
            self.queue_clause(request, user),
            self.ownership_clause(request, user),
            self.status_clause(request),
            self.date_clause(request),
            self.search_clause(pattern),
            self.unread_clause(request),
        ]
        page = _page(request.page_number)
        return TicketQuery(
            clauses=[c for c in candidates if c is not None],
            search_pattern=pattern,
            limit=self.page_size,
            offset=self.page_size * (page - 1),
        )

    async def fetch(self, db: AsyncSession, query: TicketQuery) -> TicketListResponse:
        try:
            count = await db.scalar(query.count_statement()) or 0
            if query.offset >= count:
                # past the last page; skip the page query
                return TicketListResponse(tickets=[], count=count, has_more=False)
            rows = (await db.execute(query.page_statement())).scalars().all()

            matched: Dict[int, List[MatchedMessageOut]] = {}
            if query.search_pattern is not None and rows:
                result = await db.execute(
                    query.matched_messages_statement([t.id for t in rows])
                )
                for msg_id, ticket_id, body in result.all():
                    matched.setdefault(ticket_id, []).append(
                        MatchedMessageOut(id=msg_id, body=body)
                    )
        except SQLAlchemyError as e:
            logger.exception("Failed to list tickets (offset=%d)", query.offset)
            raise DatabaseError("Failed to list tickets", details=str(e))

        tickets: List[TicketOut] = []
        for t in rows:
            out = TicketOut.model_validate(t)
            if query.search_pattern is not None:
                out = out.model_copy(update={"messages": matched.get(t.id, [])})
            tickets.append(out)

        return TicketListResponse(
            tickets=tickets,
            count=count,
            has_more=count > query.offset + len(tickets),
        )


async def list_tickets(
    db: AsyncSession,
    request: ListTicketsRequest,
    policy: Optional[QueueAccessPolicy] = None,
    *,
    tz: Optional[tzinfo] = None,
    page_size: int = TICKETS_PAGE_SIZE,
) -> TicketListResponse:
    """List one page of the tickets ``request.user_id`` is allowed to see."""
    user = await UserManager().get_user(db, request.user_id)
    builder = TicketQueryBuilder(policy or QueueAccessPolicy(), tz=tz, page_size=page_size)
    query = builder.build(request, user)
    logger.debug(
        "Listing tickets for user %s: clauses=%s offset=%d",
        user.id,
        query.clause_names,
        query.offset,
    )
    return await builder.fetch(db, query)
