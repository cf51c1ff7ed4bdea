"""
Abstract Repository Pattern

Defines the record base class and the repository interface for typed
access to a document store. Domain code depends on Repository[T]; the
MongoDB implementation lives in mongo.py.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from bson import ObjectId
from bson.errors import BSONError
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

from ..constants import ID_FIELD
from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from .cursor import TypedCursor

# Failures raised by the driver, including malformed BSON in a reply
DRIVER_ERRORS: tuple[type[Exception], ...] = (PyMongoError, BSONError)


class Record(BaseModel):
    """
    Base class for persisted records.

    A record knows the collection it lives in and carries an optional
    identifier, stored under ``_id``. The identifier is absent until the
    record is persisted (or assigned by the caller).

    Example:
        class Species(Record):
            collection_name = "species"

            name: str
            category: str
            taxonomy: str
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    collection_name: ClassVar[str | None] = None

    id: ObjectId | None = Field(default=None, alias=ID_FIELD)

    def get_id(self) -> ObjectId | None:
        """Get the identifier for this record."""
        return self.id

    def set_id(self, id: ObjectId) -> None:
        """Set the identifier for this record."""
        self.id = id


T = TypeVar("T", bound=Record)


def collection_name_of(record_type: type[Record]) -> str:
    """
    Return the collection name declared by a record type.

    Raises:
        ConfigurationError: If the record type declares no collection name
    """
    name = getattr(record_type, "collection_name", None)
    if not isinstance(name, str) or not name:
        raise ConfigurationError(
            f"{record_type.__name__} does not declare a collection_name",
            config_key="collection_name",
            config_value=name,
        )
    return name


@dataclass(frozen=True)
class InsertSummary:
    """Outcome of a bulk insert as reported by the store."""

    inserted_ids: list[Any] = field(default_factory=list)
    acknowledged: bool = True

    @property
    def inserted_count(self) -> int:
        return len(self.inserted_ids)


@dataclass(frozen=True)
class DeleteSummary:
    """Outcome of a bulk delete. ``deleted_count`` is None for unacknowledged writes."""

    deleted_count: int | None = 0
    acknowledged: bool = True


class Repository(ABC, Generic[T]):
    """
    Abstract repository interface for typed record persistence.

    One repository serves one record type and therefore one collection.
    "Nothing matched" is reported as None, never as an exception.

    Example:
        class SpeciesService:
            def __init__(self, species: Repository[Species]):
                self._species = species

            async def rename(self, old: str, new: str) -> Species | None:
                found = await self._species.find_one({"name": old})
                if found is None:
                    return None
                found.name = new
                return await self._species.upsert(found)
    """

    @abstractmethod
    async def upsert(self, record: T, filter: dict[str, Any] | None = None) -> T | None:
        """
        Replace the matching document or insert a new one.

        Args:
            record: Record to store
            filter: Selection used only when the record carries no identifier

        Returns:
            The stored record as read back after the write
        """

    @abstractmethod
    async def insert_many(self, records: Iterable[T], **options: Any) -> InsertSummary:
        """
        Insert several records in one batch.

        Args:
            records: Records to insert
            **options: Driver options (e.g. ordered=False)

        Returns:
            InsertSummary with the identifiers reported by the store
        """

    @abstractmethod
    async def find_one(self, filter: dict[str, Any] | None = None, **options: Any) -> T | None:
        """
        Find a single record matching a filter.

        Returns:
            First matching record or None
        """

    @abstractmethod
    async def find(self, filter: dict[str, Any] | None = None, **options: Any) -> "TypedCursor[T]":
        """
        Open a streaming query.

        Returns:
            A cursor yielding decoded records lazily
        """

    @abstractmethod
    async def delete_one(self, filter: dict[str, Any], **options: Any) -> T | None:
        """
        Remove one matching record.

        Returns:
            The removed record, or None if nothing matched
        """

    @abstractmethod
    async def delete_many(self, filter: dict[str, Any], **options: Any) -> DeleteSummary:
        """
        Remove every matching record.

        Returns:
            DeleteSummary with the number of removed documents
        """
