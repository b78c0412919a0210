# delivery_dispatch/modules/delivery/exceptions.py
# Domain-specific exceptions for the Delivery module

class DeliveryError(Exception):
    """Base exception for delivery module errors."""
    pass

class DeliveryValidationError(DeliveryError):
    """Required input is missing or malformed."""
    pass

class DeliveryNotFoundError(DeliveryError):
    def __init__(self, delivery_id: str):
        super().__init__(f"Delivery request not found with deliveryId: '{delivery_id}'")
        self.delivery_id = delivery_id

class DeliveryConflictError(DeliveryError):
    """The request clashes with the stored state of a delivery."""
    pass

class DeliveryAlreadyExistsError(DeliveryConflictError):
    def __init__(self, delivery_id: str):
        super().__init__(f"Delivery request with ID '{delivery_id}' already exists")
        self.delivery_id = delivery_id

class InvalidDeliveryStatusError(DeliveryConflictError):
    def __init__(self, delivery_id: str, current_status: str, action: str):
        super().__init__(f"Delivery request '{delivery_id}' is not pending for {action} (current status: '{current_status}')")
        self.delivery_id = delivery_id
        self.current_status = current_status
        self.action = action

class DeliveryUpdateError(DeliveryError):
    """The conditional update matched an unexpected number of documents."""
    def __init__(self, delivery_id: str, matched_count: int):
        super().__init__(f"Failed to update delivery request '{delivery_id}' (matched {matched_count})")
        self.delivery_id = delivery_id
        self.matched_count = matched_count
