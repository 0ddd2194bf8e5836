"""
MongoDocumentStore - MongoDB-backed document store.

Collections hold catalog documents (artists, albums, songs, playlists).
Ids are exposed as strings; 24-hex ids are matched as ObjectIds.
"""

import asyncio
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient

from spotibuds.common.logging import get_logger

logger = get_logger(__name__)


def to_object_id(doc_id: str) -> Any:
    """ObjectId for 24-hex ids, the raw string otherwise."""
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return doc_id


def serialize_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Render ``_id`` as string ``id`` and ObjectId values as strings."""
    result: Dict[str, Any] = {}
    for field, value in document.items():
        if field == "_id":
            result["id"] = str(value)
        elif isinstance(value, ObjectId):
            result[field] = str(value)
        elif isinstance(value, dict):
            result[field] = serialize_document(value)
        elif isinstance(value, list):
            result[field] = [
                serialize_document(v) if isinstance(v, dict)
                else str(v) if isinstance(v, ObjectId)
                else v
                for v in value
            ]
        else:
            result[field] = value
    return result


class MongoDocumentStore:
    """
    Document store over pymongo's asyncio client.

    Implements DocumentStoreProtocol.
    """

    def __init__(
        self,
        url: str,
        database: str = "spotibuds",
        server_selection_timeout: float = 30.0,
        client: Optional[AsyncMongoClient] = None,
    ):
        """
        Args:
            url: MongoDB connection string
            database: Database name
            server_selection_timeout: Seconds to wait for a usable server
            client: Pre-built client (tests)
        """
        timeout_ms = int(server_selection_timeout * 1000)
        self.client = client or AsyncMongoClient(
            url,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
            maxPoolSize=50,
            minPoolSize=10,
            maxIdleTimeMS=5 * 60 * 1000,
            retryWrites=True,
            retryReads=True,
        )
        self.database = self.client[database]

    async def ping(self, timeout: Optional[float] = None) -> bool:
        """Run the ``ping`` command against the admin database."""
        command = self.client.admin.command("ping")
        result = await asyncio.wait_for(command, timeout) if timeout else await command
        return bool(result.get("ok"))

    def collection(self, name: str) -> Any:
        return self.database[name]

    async def find(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        cursor = self.database[collection].find(filter or {})
        return [serialize_document(doc) for doc in await cursor.to_list()]

    async def find_one(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = await self.database[collection].find_one({"_id": to_object_id(doc_id)})
        return serialize_document(document) if document is not None else None

    async def insert(self, collection: str, document: Dict[str, Any]) -> str:
        result = await self.database[collection].insert_one(dict(document))
        return str(result.inserted_id)

    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> bool:
        result = await self.database[collection].update_one(
            {"_id": to_object_id(doc_id)}, {"$set": changes}
        )
        return result.matched_count > 0

    async def delete(self, collection: str, doc_id: str) -> bool:
        result = await self.database[collection].delete_one({"_id": to_object_id(doc_id)})
        return result.deleted_count > 0

    async def close(self) -> None:
        await self.client.close()
