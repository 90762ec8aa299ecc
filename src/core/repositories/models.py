from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


from src.shared.utils.date_format import FormattedDateTime

# ``FormattedDateTime`` ensures datetime values are stored with millisecond
# precision and handles formatting transparently.


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UserQueue(Base):
    __tablename__ = "UserQueues"
    user_id = Column(Integer, ForeignKey("Users.id", ondelete="CASCADE"), primary_key=True)
    queue_id = Column(Integer, ForeignKey("Queues.id", ondelete="CASCADE"), primary_key=True)


class Queue(Base):
    __tablename__ = "Queues"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    color = Column(String(32), nullable=False)


class User(Base):
    __tablename__ = "Users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    profile = Column(String(32), nullable=False, default="user")

    queues = relationship(Queue, secondary="UserQueues", lazy="raise")


class Contact(Base):
    __tablename__ = "Contacts"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    number = Column(String(64), nullable=False, index=True)
    profile_pic_url = Column(String, nullable=True)


class Whatsapp(Base):
    __tablename__ = "Whatsapps"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)


class Ticket(Base):
    __tablename__ = "Tickets"
    id = Column(Integer, primary_key=True, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    unread_messages = Column(Integer, nullable=False, default=0)
    last_message = Column(Text, nullable=True)

    contact_id = Column(Integer, ForeignKey("Contacts.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("Users.id"), nullable=True, index=True)
    queue_id = Column(Integer, ForeignKey("Queues.id"), nullable=True, index=True)
    whatsapp_id = Column(Integer, ForeignKey("Whatsapps.id"), nullable=True)

    created_at = Column(FormattedDateTime(), nullable=False, default=_utcnow)
    updated_at = Column(
        FormattedDateTime(),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        index=True,
    )

    contact = relationship(Contact, lazy="raise")
    queue = relationship(Queue, lazy="raise")
    whatsapp = relationship(Whatsapp, lazy="raise")


class Message(Base):
    __tablename__ = "Messages"
    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("Tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    body = Column(Text, nullable=False)
    from_me = Column(Boolean, nullable=False, default=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(FormattedDateTime(), nullable=False, default=_utcnow)
