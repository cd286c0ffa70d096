"""
Users API endpoints

CRUD for users and the user/book ownership relation.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from ...services.users import UserService
from ..dependencies import NonBlankText, get_user_service, parse_uuid

logger = structlog.get_logger()
router = APIRouter(prefix="/users", tags=["users"])


class UserCreate(BaseModel):
    """Schema for creating users."""

    name: NonBlankText = Field(..., max_length=255)
    email: EmailStr


class UserUpdate(BaseModel):
    """Partial update; omitted fields stay unchanged, explicit nulls are rejected."""

    name: Optional[NonBlankText] = Field(None, max_length=255)
    email: Optional[EmailStr] = None

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate, service: UserService = Depends(get_user_service)
) -> Dict[str, str]:
    user_id = await service.create(name=user_data.name, email=user_data.email)
    return {"id": str(user_id)}


@router.get("")
async def list_users(
    service: UserService = Depends(get_user_service),
) -> List[Dict[str, Any]]:
    return await service.list()


@router.get("/{user_id}")
async def get_user(
    user_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    return await service.get(parse_uuid(user_id, "user id"))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> Dict[str, str]:
    identifier = parse_uuid(user_id, "user id")
    updated_id = await service.update(
        identifier, user_data.model_dump(exclude_unset=True)
    )
    return {"id": str(updated_id)}


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str, service: UserService = Depends(get_user_service)
) -> Response:
    await service.delete(parse_uuid(user_id, "user id"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/books/{book_id}")
async def assign_book(
    user_id: str, book_id: str, service: UserService = Depends(get_user_service)
) -> Dict[str, str]:
    """Record ownership. Repeating the call is a no-op."""
    await service.assign_book(
        parse_uuid(user_id, "user id"), parse_uuid(book_id, "book id")
    )
    return {"message": "Book assigned to user"}


@router.delete("/{user_id}/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_book(
    user_id: str, book_id: str, service: UserService = Depends(get_user_service)
) -> Response:
    await service.remove_book(
        parse_uuid(user_id, "user id"), parse_uuid(book_id, "book id")
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/books")
async def list_user_books(
    user_id: str, service: UserService = Depends(get_user_service)
) -> List[Dict[str, Any]]:
    return await service.list_books(parse_uuid(user_id, "user id"))
