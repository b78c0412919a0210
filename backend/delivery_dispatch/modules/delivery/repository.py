# delivery_dispatch/modules/delivery/repository.py
# Repository for DeliveryRequest data operations

from typing import Optional, Dict, Any
from datetime import datetime
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError
from delivery_dispatch.core.config import settings
from delivery_dispatch.core.exceptions import RepositoryError, DuplicateDeliveryError
from delivery_dispatch.core.logging_setup import logger
from delivery_dispatch.db.mongo_client import get_database
from delivery_dispatch.db.schemas.delivery_schemas import DeliveryRequestDoc, DeliveryStatus

class DeliveryRepository:
    """Repository for DeliveryRequest data operations.

    All Mongo filter and update documents are built here; the service only
    sees delivery ids, statuses and matched counts.
    """
    _collection: AsyncIOMotorCollection

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: Optional[str] = None):
        self.collection_name = collection_name or settings.DELIVERY_COLLECTION
        self._collection = db[self.collection_name]
        logger.debug("DeliveryRepository initialized.")

    async def ensure_indexes(self):
        """Creates the unique deliveryId index backing create's duplicate check."""
        log = logger.bind(collection=self.collection_name)
        try:
            await self._collection.create_index("deliveryId", unique=True)
            await self._collection.create_index("status")
            log.info("Indexes checked/created for delivery requests.")
        except PyMongoError as e:
            log.exception("Error ensuring indexes for delivery requests.")
            raise RepositoryError(f"Error ensuring indexes: {e}") from e

    def _map_doc(self, doc: Optional[Dict[str, Any]]) -> Optional[DeliveryRequestDoc]:
        if doc is None:
            return None
        try:
            return DeliveryRequestDoc.model_validate(doc)
        except ValidationError as e:
            logger.error(f"Failed to map document to DeliveryRequestDoc: {e}")
            raise RepositoryError(f"Stored delivery request is malformed: {e}") from e

    @staticmethod
    def _to_document(record: DeliveryRequestDoc) -> Dict[str, Any]:
        doc = record.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
        doc["status"] = record.status.value
        return doc

    async def find_by_delivery_id(self, delivery_id: str) -> Optional[DeliveryRequestDoc]:
        """Finds a delivery request by its business key. None when absent."""
        log = logger.bind(collection=self.collection_name, delivery_id=delivery_id)
        log.debug("Finding delivery request by deliveryId.")
        try:
            doc = await self._collection.find_one({"deliveryId": delivery_id})
        except PyMongoError as e:
            log.exception("Database error finding delivery request.")
            raise RepositoryError(f"Error fetching delivery request: {e}") from e
        return self._map_doc(doc)

    async def insert(self, record: DeliveryRequestDoc) -> str:
        """Inserts a new delivery request and returns the store-assigned id."""
        log = logger.bind(collection=self.collection_name, delivery_id=record.delivery_id, action="insert")
        log.debug("Inserting delivery request document.")
        try:
            result = await self._collection.insert_one(self._to_document(record))
        except DuplicateKeyError as e:
            log.warning("Insert rejected by unique deliveryId index.")
            raise DuplicateDeliveryError(record.delivery_id) from e
        except PyMongoError as e:
            log.exception("Database error inserting delivery request.")
            raise RepositoryError(f"Error creating delivery request: {e}") from e
        log.info(f"Delivery request document created with ID: {result.inserted_id}")
        return str(result.inserted_id)

    async def update_status_and_driver(
        self,
        delivery_id: str,
        new_status: DeliveryStatus,
        driver_id: int,
        notes: Optional[str],
        now: datetime,
        expected_status: Optional[DeliveryStatus] = None,
    ) -> int:
        """Atomically sets driver, status and updatedAt; returns the matched count.

        driverNotes is only overwritten when notes is non-empty. When
        expected_status is given, documents in any other status do not match.
        """
        update_filter: Dict[str, Any] = {"deliveryId": delivery_id}
        if expected_status is not None:
            update_filter["status"] = expected_status.value

        set_document: Dict[str, Any] = {
            "driverId": driver_id,
            "status": new_status.value,
            "updatedAt": now,
        }
        if notes:
            set_document["driverNotes"] = notes

        log = logger.bind(collection=self.collection_name, delivery_id=delivery_id, new_status=new_status.value)
        log.debug(f"Updating delivery request, keys={list(set_document.keys())}.")
        try:
            result = await self._collection.update_one(update_filter, {"$set": set_document})
        except PyMongoError as e:
            log.exception("Database error updating delivery request.")
            raise RepositoryError(f"Error updating delivery request: {e}") from e

        if result.matched_count:
            log.info("Delivery request updated.")
        else:
            log.warning("No delivery request matched the update filter.")
        return result.matched_count

def get_delivery_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> DeliveryRepository:
    """FastAPI dependency building a repository over the request's database."""
    return DeliveryRepository(db=db)
