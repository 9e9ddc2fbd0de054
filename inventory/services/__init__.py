from .boxes import BoxRegistry, DuplicateNameCheck
from .inventory import InventoryService, requires
from .locations import LocationHierarchy, SoftDeleteResult
from .qr_codes import QrCodeLedger
from .tenant_guard import TenantGuard, WorkspaceContext
from .workspaces import WorkspaceDirectory

__all__ = [
    "BoxRegistry",
    "DuplicateNameCheck",
    "InventoryService",
    "LocationHierarchy",
    "QrCodeLedger",
    "SoftDeleteResult",
    "TenantGuard",
    "WorkspaceContext",
    "WorkspaceDirectory",
    "requires",
]
