"""
Books API endpoints

CRUD for books, filtered listing and the popularity ranking.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, Field, field_validator

from ...constants import MAX_PAGES, MAX_POPULAR_LIMIT
from ...core.config import get_settings
from ...core.exceptions import ValidationError
from ...domain.filters import parse_book_filter, parse_calendar_date
from ...services.books import BookService
from ..dependencies import NonBlankText, get_book_service, parse_uuid

logger = structlog.get_logger()
router = APIRouter(prefix="/books", tags=["books"])

# API field name -> model attribute
_BOOK_FIELDS = {
    "title": "title",
    "author": "author",
    "publishedDate": "published_date",
    "pages": "pages",
}


def _coerce_published_date(value: Any) -> date:
    try:
        return parse_calendar_date(value, "publishedDate")
    except ValidationError as e:
        raise ValueError(e.message) from None


class BookCreate(BaseModel):
    """Schema for creating books."""

    title: NonBlankText = Field(..., max_length=500)
    author: NonBlankText = Field(..., max_length=255)
    publishedDate: date
    pages: int = Field(..., strict=True, gt=0, le=MAX_PAGES)

    @field_validator("publishedDate", mode="before")
    @classmethod
    def parse_published_date(cls, value: Any) -> date:
        return _coerce_published_date(value)


class BookUpdate(BaseModel):
    """Partial update; omitted fields stay unchanged, explicit nulls are rejected."""

    title: Optional[NonBlankText] = Field(None, max_length=500)
    author: Optional[NonBlankText] = Field(None, max_length=255)
    publishedDate: Optional[date] = None
    pages: Optional[int] = Field(None, strict=True, gt=0, le=MAX_PAGES)

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("publishedDate", mode="before")
    @classmethod
    def parse_published_date(cls, value: Any) -> date:
        return _coerce_published_date(value)

    def to_changes(self) -> Dict[str, Any]:
        """Model attribute changes for the fields the client actually sent."""
        return {
            _BOOK_FIELDS[name]: value
            for name, value in self.model_dump(exclude_unset=True).items()
        }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    book_data: BookCreate, service: BookService = Depends(get_book_service)
) -> Dict[str, str]:
    book_id = await service.create(
        title=book_data.title,
        author=book_data.author,
        published_date=book_data.publishedDate,
        pages=book_data.pages,
    )
    return {"id": str(book_id)}


@router.get("")
async def list_books(
    request: Request, service: BookService = Depends(get_book_service)
) -> List[Dict[str, Any]]:
    """List books matching the optional author, date and page filters."""
    book_filter = parse_book_filter(request.query_params)
    return await service.list(book_filter)


@router.get("/popular")
async def popular_books(
    limit: Optional[int] = Query(None, ge=1, le=MAX_POPULAR_LIMIT),
    service: BookService = Depends(get_book_service),
) -> List[Dict[str, Any]]:
    """Books ranked by number of owners."""
    if limit is None:
        limit = get_settings().POPULAR_BOOKS_DEFAULT_LIMIT
    return await service.popular(limit)


@router.get("/{book_id}")
async def get_book(
    book_id: str, service: BookService = Depends(get_book_service)
) -> Dict[str, Any]:
    return await service.get(parse_uuid(book_id, "book id"))


@router.put("/{book_id}")
async def update_book(
    book_id: str,
    book_data: BookUpdate,
    service: BookService = Depends(get_book_service),
) -> Dict[str, str]:
    identifier = parse_uuid(book_id, "book id")
    updated_id = await service.update(identifier, book_data.to_changes())
    return {"id": str(updated_id)}


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: str, service: BookService = Depends(get_book_service)
) -> Response:
    await service.delete(parse_uuid(book_id, "book id"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
