# delivery_dispatch/db/schemas/delivery_schemas.py
from pydantic import BaseModel, Field
from typing import Annotated, List, Optional
from datetime import datetime
from enum import Enum
from .common_schemas import PyObjectId, CAMEL_CASE_CONFIG

# --- Enums ---
class DeliveryStatus(str, Enum):
    PENDING = "pending"                 # No driver assigned yet
    DISPATCHED = "dispatched"           # Driver assigned, ready to pick up
    # Reserved for later lifecycle stages, never written by this service
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    FAILED_DELIVERY = "failed_delivery"
    CANCELLED = "cancelled"

# Stored as a BSON int64; booleans and numeric strings are rejected
DriverId = Annotated[int, Field(strict=True, lt=2**63)]

# --- Subdocument/Helper Models ---
class Location(BaseModel):
    """Point on the map. Coordinates are stored as given, never processed."""
    lat: float = Field(..., strict=True, description="Latitude in degrees")
    lng: float = Field(..., strict=True, description="Longitude in degrees")
    address: Optional[str] = None

# --- Main Document Model ---
class DeliveryRequestDoc(BaseModel):
    """MongoDB document representing a delivery request.

    driver_id stays unset until the request is dispatched; once set, nothing
    in this service changes it again. created_at is written once, updated_at
    on creation and on dispatch.
    """
    id: Optional[PyObjectId] = Field(None, alias="_id")
    delivery_id: str = Field(..., description="Caller-supplied unique business key")
    order_id: str
    driver_id: Optional[int] = None
    pickup_location: Location
    dropoff_location: Location
    route: List[Location] = Field(..., description="Ordered waypoints, stored verbatim")
    status: DeliveryStatus = DeliveryStatus.PENDING
    created_at: datetime
    updated_at: datetime
    driver_notes: Optional[str] = None

    model_config = CAMEL_CASE_CONFIG

# --- API Payloads ---
class CreateDeliveryRequestPayload(BaseModel):
    # Emptiness of ids and route is checked by DeliveryService
    delivery_id: str
    order_id: str
    pickup_location: Location
    dropoff_location: Location
    route: List[Location]
    driver_notes: Optional[str] = None

    model_config = CAMEL_CASE_CONFIG

class DispatchDeliveryPayload(BaseModel):
    delivery_id: str
    driver_id: DriverId
    driver_notes: Optional[str] = None

    model_config = CAMEL_CASE_CONFIG

# --- API Responses ---
class DeliveryCreatedResponse(BaseModel):
    success: bool = True
    message: str
    delivery_id: str
    status: DeliveryStatus = DeliveryStatus.PENDING

    model_config = CAMEL_CASE_CONFIG

class DeliveryDispatchedResponse(BaseModel):
    success: bool = True
    message: str
    delivery_id: str
    driver_id: int
    status: DeliveryStatus = DeliveryStatus.DISPATCHED
    updated_at: datetime

    model_config = CAMEL_CASE_CONFIG
