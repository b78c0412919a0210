import asyncio
from datetime import datetime, timezone

import pytest
from pymongo.errors import AutoReconnect

from delivery_dispatch.core.exceptions import DuplicateDeliveryError, RepositoryError
from delivery_dispatch.db.schemas.delivery_schemas import DeliveryRequestDoc, DeliveryStatus, Location

NOW = datetime(2026, 10, 17, 9, 30, 0, 125000, tzinfo=timezone.utc)


def _record(delivery_id: str = "d300", **overrides) -> DeliveryRequestDoc:
    fields = dict(
        delivery_id=delivery_id,
        order_id="o300",
        pickup_location=Location(lat=36.8, lng=10.2, address="Depot"),
        dropoff_location=Location(lat=36.9, lng=10.3),
        route=[Location(lat=36.8, lng=10.2), Location(lat=36.9, lng=10.3)],
        status=DeliveryStatus.PENDING,
        created_at=NOW,
        updated_at=NOW,
    )
    fields.update(overrides)
    return DeliveryRequestDoc(**fields)


def test_insert_writes_camel_case_document(repository, collection) -> None:
    inserted_id = asyncio.run(repository.insert(_record()))

    doc = collection.documents[0]
    assert str(doc["_id"]) == inserted_id
    assert doc["deliveryId"] == "d300"
    assert doc["status"] == "pending"
    assert doc["createdAt"] == NOW
    assert doc["dropoffLocation"] == {"lat": 36.9, "lng": 10.3}
    assert "driverId" not in doc
    assert "driverNotes" not in doc


def test_find_returns_none_when_absent(repository) -> None:
    assert asyncio.run(repository.find_by_delivery_id("d300")) is None


def test_find_maps_stored_document(repository) -> None:
    asyncio.run(repository.insert(_record(driver_notes="Call on arrival")))

    found = asyncio.run(repository.find_by_delivery_id("d300"))

    assert found.delivery_id == "d300"
    assert found.driver_notes == "Call on arrival"
    assert found.status is DeliveryStatus.PENDING
    assert isinstance(found.id, str)


def test_find_wraps_store_failure(repository, collection) -> None:
    collection.fail_with = AutoReconnect("connection reset")

    with pytest.raises(RepositoryError):
        asyncio.run(repository.find_by_delivery_id("d300"))


def test_find_rejects_malformed_document(repository, collection) -> None:
    collection.documents.append({"deliveryId": "bad", "status": "teleported"})

    with pytest.raises(RepositoryError):
        asyncio.run(repository.find_by_delivery_id("bad"))


def test_insert_duplicate_raises_duplicate_error(repository) -> None:
    asyncio.run(repository.insert(_record()))

    with pytest.raises(DuplicateDeliveryError) as exc_info:
        asyncio.run(repository.insert(_record()))
    assert exc_info.value.delivery_id == "d300"


def test_update_sets_notes_only_when_given(repository, collection) -> None:
    asyncio.run(repository.insert(_record(driver_notes="original")))
    later = datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)

    matched = asyncio.run(repository.update_status_and_driver("d300", DeliveryStatus.DISPATCHED, 42, "", later))

    assert matched == 1
    doc = collection.documents[0]
    assert doc["driverId"] == 42
    assert doc["status"] == "dispatched"
    assert doc["updatedAt"] == later
    assert doc["driverNotes"] == "original"
    assert doc["createdAt"] == NOW


def test_update_with_expected_status_skips_other_states(repository, collection) -> None:
    asyncio.run(repository.insert(_record(status=DeliveryStatus.DISPATCHED, driver_id=7)))

    matched = asyncio.run(
        repository.update_status_and_driver(
            "d300", DeliveryStatus.DISPATCHED, 8, "new notes", NOW, expected_status=DeliveryStatus.PENDING
        )
    )

    assert matched == 0
    assert collection.documents[0]["driverId"] == 7
    assert "driverNotes" not in collection.documents[0]


def test_ensure_indexes_creates_unique_delivery_id(repository, collection) -> None:
    asyncio.run(repository.ensure_indexes())

    assert ("deliveryId", {"unique": True}) in collection.indexes
