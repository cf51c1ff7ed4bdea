"""
Record <-> document conversion.

A codec is the only place where records meet raw documents. Repositories
and cursors call it and never look inside a document themselves.
"""

from collections.abc import Mapping
from typing import Any, Generic, Protocol, TypeVar

from pydantic import ValidationError

from ..constants import ID_FIELD
from ..exceptions import DecodeError, SerializationError
from .base import Record, collection_name_of

T = TypeVar("T", bound=Record)


class Codec(Protocol[T]):
    """Converts records to documents and back."""

    def encode(self, record: T) -> dict[str, Any]: ...

    def decode(self, document: Mapping[str, Any]) -> T: ...


class PydanticCodec(Generic[T]):
    """
    Default codec for Record subclasses.

    Values are dumped in python mode so BSON-native types (ObjectId,
    datetime, bytes) reach the driver untouched. A record without an
    identifier is encoded without an ``_id`` key.
    """

    def __init__(self, record_type: type[T]):
        self._record_type = record_type
        self._collection_name = collection_name_of(record_type)

    @property
    def record_type(self) -> type[T]:
        return self._record_type

    def encode(self, record: T) -> dict[str, Any]:
        if not isinstance(record, self._record_type):
            raise SerializationError(
                f"Expected {self._record_type.__name__}, got {type(record).__name__}",
                record_type=self._record_type.__name__,
            )
        try:
            document = record.model_dump(mode="python", by_alias=True)
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Failed to encode {self._record_type.__name__}",
                record_type=self._record_type.__name__,
            ) from e

        if not isinstance(document, dict):
            raise SerializationError(
                f"Encoding {self._record_type.__name__} did not produce a document",
                record_type=self._record_type.__name__,
            )
        if document.get(ID_FIELD) is None:
            document.pop(ID_FIELD, None)
        return document

    def decode(self, document: Mapping[str, Any]) -> T:
        try:
            return self._record_type.model_validate(dict(document))
        except (ValidationError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Document cannot be decoded as {self._record_type.__name__}",
                record_type=self._record_type.__name__,
                collection_name=self._collection_name,
            ) from e
