from __future__ import annotations

from datetime import date, datetime
from unittest.mock import MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError, WriteError

from database import RecordStore, collection_name, ping
from errors import DuplicateRecord, ErrorKind, PersistenceError
from schemas import Booking, NewsletterSubscription


def test_insert_assigns_id_and_timestamp(db):
    store = RecordStore(db[collection_name(Booking)])
    receipt = store.insert({"name": "Jane", "date": date(2025, 1, 15)})
    assert receipt.id
    assert isinstance(receipt.created_at, datetime)
    doc = db["booking"].find_one({})
    assert str(doc["_id"]) == receipt.id
    assert doc["date"].year == 2025 and doc["date"].day == 15
    assert "created_at" in doc


def test_insert_does_not_mutate_input(db):
    record = {"email": "a@x.com"}
    RecordStore(db["contact"]).insert(record)
    assert record == {"email": "a@x.com"}


def test_find_by_email(db):
    store = RecordStore(db[collection_name(NewsletterSubscription)])
    receipt = store.insert({"email": "a@x.com"})
    found = store.find_by_email("a@x.com")
    assert found["_id"] == receipt.id
    assert store.find_by_email("b@x.com") is None


def test_unique_email_is_enforced_by_the_store(db):
    store = RecordStore(db["newslettersubscription"])
    store.insert({"email": "a@x.com"})
    with pytest.raises(DuplicateRecord) as exc_info:
        store.insert({"email": "a@x.com"})
    assert exc_info.value.kind is ErrorKind.DUPLICATE
    assert exc_info.value.status_code == 400
    assert db["newslettersubscription"].count_documents({}) == 1


def test_connectivity_failure_is_a_server_error():
    collection = MagicMock()
    collection.name = "booking"
    collection.insert_one.side_effect = ServerSelectionTimeoutError("no servers")
    with pytest.raises(PersistenceError) as exc_info:
        RecordStore(collection).insert({"name": "Jane"})
    assert exc_info.value.data_shape is False
    assert exc_info.value.status_code == 500


def test_rejected_document_is_a_data_error():
    collection = MagicMock()
    collection.name = "booking"
    collection.insert_one.side_effect = WriteError("Document failed validation", 121, {"errmsg": "Document failed validation"})
    with pytest.raises(PersistenceError) as exc_info:
        RecordStore(collection).insert({"name": "Jane"})
    assert exc_info.value.status_code == 400
    assert exc_info.value.to_body()["message"] == "Database validation failed"


def test_ping_reports_failure():
    broken = MagicMock()
    broken.command.side_effect = ServerSelectionTimeoutError("down")
    assert ping(broken) is False
    assert ping(MagicMock()) is True
