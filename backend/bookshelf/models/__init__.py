"""
Bookshelf Database Models

SQLAlchemy models for books, users and the ownership edges between them.
Ownership is an explicit edge table so entity deletion sweeps edges through
an index instead of scanning embedded references.
"""

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import date, datetime
import uuid


class Base(DeclarativeBase):
    """Canonical Base class for all database models."""

    pass


class TimestampMixin:
    """Mixin for timestamp fields."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    def to_record(self) -> dict:
        return {"id": str(self.id), "name": self.name, "email": self.email}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class Book(Base, TimestampMixin):
    """Book model."""

    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    published_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    pages: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (CheckConstraint("pages > 0", name="check_pages_positive"),)

    def to_record(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "author": self.author,
            "publishedDate": self.published_date.isoformat(),
            "pages": self.pages,
        }

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title={self.title})>"


class BookOwnership(Base, TimestampMixin):
    """Ownership edge between a user and a book."""

    __tablename__ = "book_ownerships"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    book_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    )

    __table_args__ = (Index("ix_book_ownerships_book_id", "book_id"),)

    def __repr__(self) -> str:
        return f"<BookOwnership(user_id={self.user_id}, book_id={self.book_id})>"
