# delivery_dispatch/core/exceptions.py
# Cross-module exceptions

class RepositoryError(Exception):
    """Raised when the document store fails or is unreachable."""
    pass

class DuplicateDeliveryError(RepositoryError):
    """The store rejected an insert because the deliveryId is already taken."""
    def __init__(self, delivery_id: str):
        super().__init__(f"Duplicate key for deliveryId '{delivery_id}'.")
        self.delivery_id = delivery_id
