"""
MongoDB Repository Implementation

Implements the Repository interface on top of a Motor database handle.
Every public operation translates records through the codec, delegates
one call to the driver and converts driver failures into StoreError.

Example:
    class Species(Record):
        collection_name = "species"

        name: str
        category: str

    species = await GenericRepository.create(db, Species)

    stored = await species.upsert(Species(name="heron", category="bird"))
    assert stored.id is not None

    async with await species.find({"category": "bird"}) as cursor:
        birds = await cursor.to_list()
"""

import time
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar, get_args

from bson import ObjectId
from bson.errors import InvalidDocument
from pymongo import ReturnDocument
from pymongo.errors import ConfigurationError as DriverConfigurationError
from pymongo.write_concern import WriteConcern

from ..constants import ID_FIELD, METRICS_PREFIX
from ..exceptions import ConfigurationError, DecodeError, SerializationError, StoreError
from ..observability.logging import get_logger, log_operation
from ..observability.metrics import MetricsCollector, get_metrics_collector
from .base import (
    DRIVER_ERRORS,
    DeleteSummary,
    InsertSummary,
    Record,
    Repository,
    collection_name_of,
)
from .codec import Codec, PydanticCodec
from .cursor import TypedCursor

T = TypeVar("T", bound=Record)


class GenericRepository(Repository[T]):
    """
    MongoDB implementation of the Repository interface.

    The record type can be passed to the constructor or bound once by
    subclassing:

        class SpeciesRepository(GenericRepository[Species]):
            def write_durability(self) -> WriteConcern | None:
                return WriteConcern(w="majority", wtimeout=5000)

        species = await SpeciesRepository.create(db)

    Instances hold no mutable state beyond the database handle and can be
    shared between tasks.

    Durability policy: upserts always run with journal acknowledgment
    (``j=True``), layered over whatever write_durability() returns. Other
    settings of that write concern are kept as given.
    """

    record_type: type[T] | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("record_type") is not None:
            return
        for base in cls.__dict__.get("__orig_bases__", ()):
            args = get_args(base)
            if args and isinstance(args[0], type) and issubclass(args[0], Record):
                cls.record_type = args[0]
                return

    def __init__(
        self,
        database: Any,
        record_type: type[T] | None = None,
        *,
        codec: Codec[T] | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Bind a repository to the collection of a record type. No I/O happens here.

        Args:
            database: Motor database handle (AsyncIOMotorDatabase or compatible)
            record_type: Record subclass served by this repository
            codec: Optional codec override (defaults to PydanticCodec)
            metrics: Optional metrics collector (defaults to the global one)

        Raises:
            ConfigurationError: If no record type is given or it declares no collection
        """
        record_type = record_type or type(self).record_type
        if record_type is None:
            raise ConfigurationError(
                f"{type(self).__name__} needs a record type", config_key="record_type"
            )

        self.record_type = record_type
        self._database = database
        self._collection_name = collection_name_of(record_type)
        self._codec: Codec[T] = codec if codec is not None else PydanticCodec(record_type)
        self._metrics = metrics if metrics is not None else get_metrics_collector()
        self._logger = get_logger(
            __name__,
            collection_name=self._collection_name,
            record_type=record_type.__name__,
        )

    @classmethod
    async def create(
        cls,
        database: Any,
        record_type: type[T] | None = None,
        **kwargs: Any,
    ) -> "GenericRepository[T]":
        """Async constructor shared by all repositories."""
        return cls(database, record_type, **kwargs)

    @property
    def database(self) -> Any:
        return self._database

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def get_collection(self) -> Any:
        """Return the Motor collection this repository is bound to."""
        return self._database[self._collection_name]

    def operation_stats(self) -> dict[str, dict[str, Any]]:
        """
        Timing and error totals for this repository's collection, per operation.

        Example:
            >>> species.operation_stats()["upsert"]["error_count"]
            0
        """
        prefix = f"{METRICS_PREFIX}."
        return {
            name.removeprefix(prefix): stats
            for name, stats in self._metrics.totals(collection=self._collection_name).items()
        }

    # -- Durability -----------------------------------------------------------

    def write_durability(self) -> WriteConcern | None:
        """
        Write concern for upserts. Override to customize.

        None means the driver defaults. Journal acknowledgment is forced on
        top of the returned value in either case.
        """
        return None

    def durable_write_concern(self) -> WriteConcern:
        """
        Build the write concern upserts run with: write_durability() plus ``j=True``.

        ``fsync`` is dropped because the driver rejects it alongside ``j``.

        Raises:
            ConfigurationError: If the combination is invalid (e.g. ``w=0``)
        """
        base = self.write_durability()
        settings = dict(base.document) if base is not None else {}
        settings.pop("fsync", None)
        settings["j"] = True
        try:
            return WriteConcern(**settings)
        except (DriverConfigurationError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid write concern for {self._collection_name}: {e}",
                config_key="write_durability",
                config_value=settings,
            ) from e

    # -- Codec helpers --------------------------------------------------------

    def get_document(self, record: T) -> dict[str, Any]:
        """Encode a record, raising SerializationError on failure."""
        try:
            return self._codec.encode(record)
        except SerializationError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise SerializationError(
                f"Failed to encode {self.record_type.__name__}",
                record_type=self.record_type.__name__,
            ) from e

    def get_instance_from_document(self, document: Mapping[str, Any]) -> T:
        """Decode a document, raising DecodeError on failure."""
        try:
            return self._codec.decode(document)
        except DecodeError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise DecodeError(
                f"Document cannot be decoded as {self.record_type.__name__}",
                record_type=self.record_type.__name__,
                collection_name=self._collection_name,
            ) from e

    # -- Operations -----------------------------------------------------------

    async def upsert(self, record: T, filter: dict[str, Any] | None = None) -> T | None:
        """
        Replace the matching document, or insert one, and return it as stored.

        The document to replace is chosen in this order:

        1. the record's own identifier, when it has one (``filter`` is ignored);
        2. a freshly generated identifier, when no ``filter`` is given. The
           identifier is assigned to ``record`` before the write;
        3. ``filter`` as given.

        Returns:
            The record read back after the write, or None if the store
            reported no document.

        Raises:
            SerializationError: The record cannot be encoded (nothing is sent)
            ConfigurationError: write_durability() cannot be combined with j=True
            StoreError: The driver call failed
            DecodeError: The stored document cannot be decoded
        """
        with self._observe("upsert"):
            document = self.get_document(record)
            write_concern = self.durable_write_concern()

            record_id = record.get_id()
            if record_id is not None:
                replace_filter = {ID_FIELD: record_id}
            elif filter is None:
                record_id = ObjectId()
                record.set_id(record_id)
                replace_filter = {ID_FIELD: record_id}
            else:
                replace_filter = filter

            collection = self.get_collection().with_options(write_concern=write_concern)
            try:
                stored = await collection.find_one_and_replace(
                    replace_filter,
                    document,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DRIVER_ERRORS as e:
                raise self._driver_error("upsert", e) from e

            if stored is None:
                self._logger.warning("Upsert returned no document")
                return None
            return self.get_instance_from_document(stored)

    async def insert_many(self, records: Iterable[T], **options: Any) -> InsertSummary:
        """
        Insert records in one batch.

        Every record is encoded before anything is sent, so one bad record
        aborts the whole call. Record identifiers are left untouched; the
        identifiers the store assigned are in the returned summary. An empty
        batch returns an empty summary without contacting the store.
        """
        with self._observe("insert_many"):
            documents = [self.get_document(record) for record in records]
            if not documents:
                return InsertSummary()

            try:
                result = await self.get_collection().insert_many(documents, **options)
            except DRIVER_ERRORS as e:
                raise self._driver_error("insert_many", e) from e

            return InsertSummary(
                inserted_ids=list(result.inserted_ids),
                acknowledged=result.acknowledged,
            )

    async def find_one(self, filter: dict[str, Any] | None = None, **options: Any) -> T | None:
        """Find a single record; a None filter matches any document."""
        with self._observe("find_one"):
            try:
                document = await self.get_collection().find_one(filter or {}, **options)
            except DRIVER_ERRORS as e:
                raise self._driver_error("find_one", e) from e

            if document is None:
                return None
            return self.get_instance_from_document(document)

    async def find(self, filter: dict[str, Any] | None = None, **options: Any) -> TypedCursor[T]:
        """
        Open a streaming query.

        Documents are decoded as they are pulled from the returned cursor,
        so decode failures surface there rather than here.
        """
        with self._observe("find"):
            try:
                raw_cursor = self.get_collection().find(filter or {}, **options)
            except DRIVER_ERRORS as e:
                raise self._driver_error("find", e) from e

            return TypedCursor(
                raw_cursor,
                self.get_instance_from_document,
                collection_name=self._collection_name,
            )

    async def delete_one(self, filter: dict[str, Any], **options: Any) -> T | None:
        """Atomically remove one matching document and return it decoded."""
        with self._observe("delete_one"):
            try:
                document = await self.get_collection().find_one_and_delete(filter, **options)
            except DRIVER_ERRORS as e:
                raise self._driver_error("delete_one", e) from e

            if document is None:
                return None
            return self.get_instance_from_document(document)

    async def delete_many(self, filter: dict[str, Any], **options: Any) -> DeleteSummary:
        """Remove every matching document. Removed content is not returned."""
        with self._observe("delete_many"):
            try:
                result = await self.get_collection().delete_many(filter, **options)
            except DRIVER_ERRORS as e:
                raise self._driver_error("delete_many", e) from e

            if not result.acknowledged:
                return DeleteSummary(deleted_count=None, acknowledged=False)
            return DeleteSummary(deleted_count=result.deleted_count)

    # -- Internals ------------------------------------------------------------

    def _driver_error(self, operation: str, error: Exception) -> SerializationError | StoreError:
        # BSON encoding happens inside the driver, after the codec
        if isinstance(error, InvalidDocument):
            return SerializationError(
                f"{operation} failed: document rejected by the driver ({error})",
                record_type=self.record_type.__name__,
            )
        return StoreError(
            f"{operation} failed: {type(error).__name__}",
            operation=operation,
            collection_name=self._collection_name,
        )

    @contextmanager
    def _observe(self, operation: str) -> Iterator[None]:
        """Time, count and log one operation; failures are logged here only."""
        start = time.perf_counter()
        error: BaseException | None = None
        try:
            yield
        except BaseException as e:
            error = e
            raise
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self._metrics.record_operation(
                f"{METRICS_PREFIX}.{operation}",
                duration_ms,
                error is None,
                collection=self._collection_name,
            )
            log_operation(self._logger, operation, duration_ms=duration_ms, error=error)

