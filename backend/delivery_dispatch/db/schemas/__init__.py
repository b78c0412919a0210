# delivery_dispatch/db/schemas/__init__.py
# Make schemas easily importable
from .common_schemas import PyObjectId, utc_now
from .delivery_schemas import (
    DeliveryStatus, Location, DeliveryRequestDoc,
    CreateDeliveryRequestPayload, DispatchDeliveryPayload,
    DeliveryCreatedResponse, DeliveryDispatchedResponse,
)
