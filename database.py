"""
MongoDB access for the form submissions.

One ``RecordStore`` per collection; documents are only ever inserted, never
updated or deleted by the application.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError, WriteError

from errors import DuplicateRecord, PersistenceError
from settings import Settings


logger = logging.getLogger(__name__)

NEWSLETTER_COLLECTION = "newslettersubscription"


def collection_name(model: type) -> str:
    return model.__name__.lower()


def connect(settings: Settings) -> Tuple[MongoClient, Database]:
    """Create the process-wide client. No network I/O happens until first use."""
    client: MongoClient = MongoClient(settings.database_url, serverSelectionTimeoutMS=5000, tz_aware=True)
    return client, client[settings.database_name]


def ensure_indexes(db: Database) -> None:
    db[NEWSLETTER_COLLECTION].create_index([("email", ASCENDING)], unique=True, name="email_unique")


def ping(db: Database) -> bool:
    try:
        db.command("ping")
        return True
    except PyMongoError as e:
        logger.warning("database ping failed", extra={"error": type(e).__name__})
        return False


def _to_bson(value: Any) -> Any:
    # BSON has no calendar-date type
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class InsertReceipt:
    id: str
    created_at: datetime


class RecordStore:
    def __init__(self, collection: Collection):
        self.collection = collection

    @property
    def name(self) -> str:
        return self.collection.name

    def insert(self, data: Union[BaseModel, Dict[str, Any]]) -> InsertReceipt:
        """Insert one document; assigns ``created_at`` and returns the new id."""
        if isinstance(data, BaseModel):
            data_dict = data.model_dump()
        else:
            data_dict = dict(data)
        data_dict = {key: _to_bson(value) for key, value in data_dict.items()}
        created_at = datetime.now(timezone.utc)
        data_dict["created_at"] = created_at
        try:
            result = self.collection.insert_one(data_dict)
        except DuplicateKeyError:
            raise DuplicateRecord() from None
        except WriteError as e:
            raise PersistenceError(
                "Database validation failed",
                data_shape=True,
                errors=[{"field": "document", "message": (e.details or {}).get("errmsg", str(e))}],
            ) from e
        except PyMongoError as e:
            raise PersistenceError(f"Could not save to {self.name}: {type(e).__name__}") from e
        return InsertReceipt(id=str(result.inserted_id), created_at=created_at)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self.collection.find_one({"email": email})
        except PyMongoError as e:
            raise PersistenceError(f"Could not read from {self.name}: {type(e).__name__}") from e
        if doc is not None and "_id" in doc:
            doc["_id"] = str(doc["_id"])
        return doc
