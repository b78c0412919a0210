# delivery_dispatch/api/endpoints/delivery_api.py
# REST endpoints for creating, reading and dispatching delivery requests

from fastapi import APIRouter, Depends, status, Path as FastApiPath
from typing import Annotated
from delivery_dispatch.modules.delivery.service import DeliveryService
from delivery_dispatch.db.schemas.delivery_schemas import (
    DeliveryRequestDoc, CreateDeliveryRequestPayload, DispatchDeliveryPayload,
    DeliveryCreatedResponse, DeliveryDispatchedResponse,
)
from delivery_dispatch.models.api_common import ErrorResponse
from delivery_dispatch.core.logging_setup import logger

router = APIRouter()

# Dependencies
DeliveryServiceDep = Annotated[DeliveryService, Depends()]

# Domain errors are rendered by the handlers registered in main.py
ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}

@router.post(
    "/delivery-request/create",
    response_model=DeliveryCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Delivery Request",
    responses=ERROR_RESPONSES,
)
async def create_delivery_request(
    payload: CreateDeliveryRequestPayload,
    delivery_service: DeliveryServiceDep,
):
    """Creates a new delivery request with status `pending`."""
    logger.bind(delivery_id=payload.delivery_id).info("Request to create delivery request.")
    return await delivery_service.create_delivery_request(payload)

@router.get(
    "/delivery/{delivery_id}",
    response_model=DeliveryRequestDoc,
    response_model_exclude_none=True,
    summary="Get Delivery Request",
    responses=ERROR_RESPONSES,
)
async def get_delivery_request(
    delivery_id: Annotated[str, FastApiPath(description="Business deliveryId of the request")],
    delivery_service: DeliveryServiceDep,
):
    """Retrieves a delivery request by its deliveryId."""
    logger.bind(delivery_id=delivery_id).info("Request for delivery request details.")
    return await delivery_service.get_delivery_request(delivery_id)

@router.post(
    "/delivery/dispatch",
    response_model=DeliveryDispatchedResponse,
    summary="Dispatch Driver",
    responses=ERROR_RESPONSES,
)
async def dispatch_delivery(
    payload: DispatchDeliveryPayload,
    delivery_service: DeliveryServiceDep,
):
    """Assigns a driver to a pending delivery request."""
    logger.bind(delivery_id=payload.delivery_id, driver_id=payload.driver_id).info("Request to dispatch driver.")
    return await delivery_service.dispatch_delivery(payload)
