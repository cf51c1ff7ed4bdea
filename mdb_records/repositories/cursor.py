"""
Typed Cursor

Presents a raw driver cursor as a lazy async sequence of records. Each
document is decoded only when it is pulled.

Usage:
    async with await species.find({"category": "bird"}) as cursor:
        async for bird in cursor:
            print(bird.name)
"""

import asyncio
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from ..exceptions import StoreError
from ..observability.logging import get_logger
from .base import DRIVER_ERRORS, Record

T = TypeVar("T", bound=Record)


class TypedCursor(Generic[T]):
    """
    Async iterator of decoded records over one query result set.

    The cursor owns the raw driver cursor. It ends for good on the first of:
    exhaustion, a driver error (StoreError, which also covers malformed BSON
    in a reply) or a document the decoder rejects (DecodeError, or whatever
    a custom decoder raised). The raw cursor is closed on each of those exits
    and every later pull raises StopAsyncIteration. It cannot be rewound; run
    the query again for a fresh cursor.

    Concurrent pulls are serialized, so two tasks never advance the raw
    cursor at the same time.
    """

    def __init__(
        self,
        cursor: Any,
        decode: Callable[[Mapping[str, Any]], T],
        collection_name: str | None = None,
    ):
        """
        Args:
            cursor: Raw async cursor (AsyncIOMotorCursor or compatible)
            decode: Converts one raw document into a record, raising DecodeError
            collection_name: Collection the query runs against (for error context)
        """
        self._cursor = cursor
        self._decode = decode
        self._collection_name = collection_name
        self._logger = get_logger(__name__, collection_name=collection_name)
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def alive(self) -> bool:
        """False once the cursor has terminated or been closed."""
        return not self._closed

    def __aiter__(self) -> "TypedCursor[T]":
        return self

    async def __anext__(self) -> T:
        async with self._lock:
            if self._closed:
                raise StopAsyncIteration

            try:
                document = await anext(self._cursor)
            except StopAsyncIteration:
                await self._release()
                raise
            except DRIVER_ERRORS as e:
                self._logger.error("Cursor pull failed", exc_info=True)
                await self._release()
                raise StoreError(
                    "Failed to fetch next document",
                    operation="find",
                    collection_name=self._collection_name,
                ) from e

            try:
                return self._decode(document)
            except Exception as e:
                self._logger.warning(f"Cursor stopped on undecodable document: {e}")
                await self._release()
                raise

    async def to_list(self, length: int | None = None) -> list[T]:
        """
        Drain up to ``length`` records (all remaining when None).

        Errors propagate exactly as they would from ``async for``.
        """
        records: list[T] = []
        if length is not None and length <= 0:
            return records
        async for record in self:
            records.append(record)
            if length is not None and len(records) >= length:
                break
        return records

    async def close(self) -> None:
        """Release the raw cursor. Safe to call more than once."""
        async with self._lock:
            await self._release()

    async def _release(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._cursor.close()
        except DRIVER_ERRORS as e:
            # Terminal either way; the caller keeps the original outcome
            self._logger.warning(f"Error closing cursor: {e}")

    async def __aenter__(self) -> "TypedCursor[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
