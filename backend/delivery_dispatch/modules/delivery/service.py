# delivery_dispatch/modules/delivery/service.py
from fastapi import Depends
from delivery_dispatch.db.schemas.common_schemas import utc_now
from delivery_dispatch.db.schemas.delivery_schemas import (
    DeliveryRequestDoc, DeliveryStatus,
    CreateDeliveryRequestPayload, DispatchDeliveryPayload,
    DeliveryCreatedResponse, DeliveryDispatchedResponse,
)
from delivery_dispatch.modules.delivery.repository import DeliveryRepository, get_delivery_repository
from delivery_dispatch.modules.delivery.exceptions import (
    DeliveryValidationError, DeliveryNotFoundError, DeliveryAlreadyExistsError,
    InvalidDeliveryStatusError, DeliveryUpdateError,
)
from delivery_dispatch.core.exceptions import DuplicateDeliveryError
from delivery_dispatch.core.logging_setup import logger

class DeliveryService:
    """Service layer for delivery request business logic.

    Holds no state between calls; every operation re-reads the store.
    """
    def __init__(self, delivery_repo: DeliveryRepository = Depends(get_delivery_repository)):
        self.delivery_repo = delivery_repo
        logger.debug("DeliveryService initialized.")

    async def create_delivery_request(self, payload: CreateDeliveryRequestPayload) -> DeliveryCreatedResponse:
        """Stores a new pending delivery request under a fresh deliveryId."""
        log = logger.bind(delivery_id=payload.delivery_id, order_id=payload.order_id)
        log.info("Creating delivery request.")

        if not payload.delivery_id or not payload.order_id or not payload.route:
            raise DeliveryValidationError("Missing required fields: deliveryId, orderId, and route are required")

        # Lookup-then-insert is not atomic; the unique index catches the race below
        existing = await self.delivery_repo.find_by_delivery_id(payload.delivery_id)
        if existing is not None:
            raise DeliveryAlreadyExistsError(payload.delivery_id)

        now = utc_now()
        record = DeliveryRequestDoc(
            delivery_id=payload.delivery_id,
            order_id=payload.order_id,
            driver_id=None,
            pickup_location=payload.pickup_location,
            dropoff_location=payload.dropoff_location,
            route=payload.route,
            status=DeliveryStatus.PENDING,
            created_at=now,
            updated_at=now,
            driver_notes=payload.driver_notes,
        )

        try:
            inserted_id = await self.delivery_repo.insert(record)
        except DuplicateDeliveryError as e:
            log.warning("Concurrent create won the race for this deliveryId.")
            raise DeliveryAlreadyExistsError(payload.delivery_id) from e

        log.success(f"Delivery request created: {inserted_id}")
        return DeliveryCreatedResponse(
            message="Delivery request created successfully",
            delivery_id=payload.delivery_id,
            status=DeliveryStatus.PENDING,
        )

    async def get_delivery_request(self, delivery_id: str) -> DeliveryRequestDoc:
        if not delivery_id:
            raise DeliveryValidationError("deliveryId parameter is required")

        delivery = await self.delivery_repo.find_by_delivery_id(delivery_id)
        if delivery is None:
            raise DeliveryNotFoundError(delivery_id)
        return delivery

    async def dispatch_delivery(self, payload: DispatchDeliveryPayload) -> DeliveryDispatchedResponse:
        """Assigns a driver to a pending delivery request.

        The pending check is repeated inside the update filter, so a request
        dispatched concurrently after the read matches nothing and fails
        instead of being reassigned.
        """
        log = logger.bind(delivery_id=payload.delivery_id, driver_id=payload.driver_id)
        log.info("Dispatching driver to delivery request.")

        if not payload.delivery_id or payload.driver_id <= 0:
            raise DeliveryValidationError("Missing required fields: deliveryId and driverId are required")

        delivery = await self.delivery_repo.find_by_delivery_id(payload.delivery_id)
        if delivery is None:
            raise DeliveryNotFoundError(payload.delivery_id)

        if delivery.status != DeliveryStatus.PENDING:
            raise InvalidDeliveryStatusError(payload.delivery_id, delivery.status.value, "dispatching to a driver")

        now = utc_now()
        matched_count = await self.delivery_repo.update_status_and_driver(
            payload.delivery_id,
            DeliveryStatus.DISPATCHED,
            payload.driver_id,
            payload.driver_notes,
            now,
            expected_status=DeliveryStatus.PENDING,
        )
        if matched_count != 1:
            log.error(f"Dispatch update matched {matched_count} documents.")
            raise DeliveryUpdateError(payload.delivery_id, matched_count)

        log.success("Driver dispatched.")
        return DeliveryDispatchedResponse(
            message=f"Driver {payload.driver_id} dispatched to delivery '{payload.delivery_id}'",
            delivery_id=payload.delivery_id,
            driver_id=payload.driver_id,
            status=DeliveryStatus.DISPATCHED,
            updated_at=now,
        )
