from datetime import datetime, timedelta, UTC
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.repositories.models import Contact, Message, Queue, Ticket, User, Whatsapp

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


async def make_queues(db: AsyncSession, *ids: int) -> list[Queue]:
    queues = [Queue(id=i, name=f"Queue {i}", color=f"#00000{i}") for i in ids]
    db.add_all(queues)
    await db.flush()
    return queues


async def make_user(
    db: AsyncSession,
    user_id: int,
    profile: str = "user",
    queues: Iterable[Queue] = (),
) -> User:
    user = User(
        id=user_id,
        name=f"Agent {user_id}",
        email=f"agent{user_id}@example.com",
        profile=profile,
    )
    user.queues = list(queues)
    db.add(user)
    await db.flush()
    return user


async def make_contact(
    db: AsyncSession, name: str = "Customer", number: str = "5511999990000"
) -> Contact:
    contact = Contact(name=name, number=number)
    db.add(contact)
    await db.flush()
    return contact


async def make_ticket(
    db: AsyncSession,
    contact: Contact,
    *,
    queue_id: Optional[int] = None,
    user_id: Optional[int] = None,
    status: str = "open",
    unread: int = 0,
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    whatsapp: Optional[Whatsapp] = None,
) -> Ticket:
    ticket = Ticket(
        contact_id=contact.id,
        queue_id=queue_id,
        user_id=user_id,
        status=status,
        unread_messages=unread,
        created_at=created_at or BASE_TIME,
        updated_at=updated_at or BASE_TIME,
        whatsapp_id=whatsapp.id if whatsapp else None,
    )
    db.add(ticket)
    await db.flush()
    return ticket


async def make_message(db: AsyncSession, ticket: Ticket, body: str) -> Message:
    msg = Message(ticket_id=ticket.id, body=body, created_at=BASE_TIME)
    db.add(msg)
    await db.flush()
    return msg


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)
