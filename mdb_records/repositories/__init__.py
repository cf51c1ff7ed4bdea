"""
MDB Records Repository Pattern

Typed repositories over a MongoDB collection, one record type per
repository, with lazily decoded cursors for streaming queries.

Usage:
    from mdb_records.repositories import GenericRepository, Record

    class Species(Record):
        collection_name = "species"

        name: str
        category: str

    species = await GenericRepository.create(db, Species)
    heron = await species.upsert(Species(name="heron", category="bird"))

    async with await species.find({"category": "bird"}) as cursor:
        async for bird in cursor:
            ...
"""

from .base import DeleteSummary, InsertSummary, Record, Repository, collection_name_of
from .codec import Codec, PydanticCodec
from .cursor import TypedCursor
from .mongo import GenericRepository

__all__ = [
    "Record",
    "Repository",
    "GenericRepository",
    "TypedCursor",
    "Codec",
    "PydanticCodec",
    "InsertSummary",
    "DeleteSummary",
    "collection_name_of",
]
