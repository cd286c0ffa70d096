"""
Unit tests for store call error mapping.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from bookshelf.core.exceptions import StoreUnavailableException
from bookshelf.repositories import run_store_operation


async def _returns(value):
    return value


async def _raises_driver_error():
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


async def _hangs():
    await asyncio.sleep(5)


class TestRunStoreOperation:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        assert await run_store_operation("books.get", _returns(42)) == 42

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_unavailable(self):
        with pytest.raises(StoreUnavailableException) as exc_info:
            await run_store_operation("books.list", _raises_driver_error())

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["operation"] == "books.list"
        assert exc_info.value.details["original_error_type"] == "OperationalError"

    @pytest.mark.asyncio
    async def test_timeout_becomes_store_unavailable(self):
        fast = SimpleNamespace(STORE_OPERATION_TIMEOUT_SECONDS=0.01)
        with patch("bookshelf.repositories.base.get_settings", return_value=fast):
            with pytest.raises(StoreUnavailableException) as exc_info:
                await run_store_operation("users.list", _hangs())

        assert exc_info.value.details["timeout_seconds"] == 0.01
