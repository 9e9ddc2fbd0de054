"""
Error taxonomy of the inventory core.

Every error carries one stable machine-readable ``code`` and a human
``message``. The JSON layer renders them as-is; storage error text never
reaches a caller.
"""


class InventoryError(Exception):
    code = "inventory_error"
    http_status = 400
    retryable = False
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self) -> dict:
        data = {"code": self.code, "message": self.message}
        if self.details:
            data.update(self.details)
        return data


class NotAMember(InventoryError):
    # Same code and status as NotFound so outsiders cannot probe for workspaces
    code = "not_found"
    http_status = 404
    default_message = "Workspace not found."


class InsufficientRole(InventoryError):
    code = "insufficient_role"
    http_status = 403
    default_message = "Your role in this workspace does not allow this action."


class NotFound(InventoryError):
    code = "not_found"
    http_status = 404
    default_message = "Not found."


class LocationNotFound(NotFound):
    code = "location_not_found"
    default_message = "Location not found."


class MaxDepthExceeded(InventoryError):
    code = "max_depth_exceeded"
    http_status = 422
    default_message = "Locations can be nested at most 5 levels deep."


class DuplicateSiblingName(InventoryError):
    code = "duplicate_sibling_name"
    http_status = 409
    default_message = "A location with this name already exists at this level."


class QrCodeAlreadyAssigned(InventoryError):
    code = "qr_code_already_assigned"
    http_status = 409
    default_message = "This QR code is already assigned to another box."


class InvalidQuantity(InventoryError):
    code = "invalid_quantity"
    default_message = "Quantity must be between 1 and 100."


class LastOwnerProtected(InventoryError):
    code = "last_owner_protected"
    http_status = 409
    default_message = "A workspace must keep at least one owner."


class InvalidInput(InventoryError):
    code = "invalid_input"
    default_message = "Invalid input."

    @classmethod
    def from_validation_error(cls, exc) -> "InvalidInput":
        """Wrap a Django ValidationError, keeping per-field messages."""
        if hasattr(exc, "error_dict"):
            fields = {name: [str(m) for m in messages] for name, messages in exc.message_dict.items()}
        else:
            fields = {"__all__": [str(m) for m in exc.messages]}
        return cls(fields=fields)


class StorageUnavailable(InventoryError):
    code = "storage_unavailable"
    http_status = 503
    retryable = True
    default_message = "Storage is temporarily unavailable, please retry."
