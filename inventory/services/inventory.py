"""
Public entry point of the inventory core.

Every workspace-scoped method takes the calling principal and a workspace
id, authorizes them with TenantGuard and runs the operation in a single
transaction. Connection failures surface as StorageUnavailable.
"""
import functools
import logging
from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, InterfaceError, OperationalError, transaction

from ..constants import DEFAULT_BOXES_PER_PAGE
from ..exceptions import NotAMember, StorageUnavailable
from ..models import Role
from .boxes import BoxRegistry
from .locations import LocationHierarchy
from .qr_codes import QrCodeLedger
from .tenant_guard import TenantGuard
from .workspaces import WorkspaceDirectory

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors():
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.exception("Database unavailable")
        raise StorageUnavailable() from exc


def requires(role):
    """
    Decorator for workspace-scoped operations.

    The wrapped method is called with a WorkspaceContext in place of
    ``(principal, workspace_id)``.
    """
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, principal, workspace_id, *args, **kwargs):
            with storage_errors(), transaction.atomic(using=self.using):
                ctx = self.guard.authorize(principal, workspace_id, role)
                return method(self, ctx, *args, **kwargs)
        wrapper.required_role = role
        return wrapper
    return decorator


class InventoryService:

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.guard = TenantGuard(using)
        self.workspaces = WorkspaceDirectory(using)
        self.locations = LocationHierarchy(using)
        self.qr_codes = QrCodeLedger(using)
        self.boxes = BoxRegistry(using, locations=self.locations, qr_codes=self.qr_codes)

    # ---------------------------------------------------------------- workspaces

    def create_workspace(self, principal, name):
        if principal is None or not getattr(principal, "is_authenticated", False):
            raise NotAMember()
        with storage_errors():
            return self.workspaces.create_workspace(principal, name)

    def list_workspaces(self, principal):
        """Memberships of the caller; each carries its workspace and role."""
        if principal is None or not getattr(principal, "is_authenticated", False):
            return []
        with storage_errors():
            return self.workspaces.memberships_for(principal)

    @requires(Role.READ_ONLY)
    def get_workspace(self, ctx):
        return ctx

    @requires(Role.OWNER)
    def rename_workspace(self, ctx, name):
        return self.workspaces.rename_workspace(ctx, name)

    @requires(Role.OWNER)
    def delete_workspace(self, ctx):
        self.workspaces.delete_workspace(ctx)

    @requires(Role.READ_ONLY)
    def list_members(self, ctx):
        return self.workspaces.list_members(ctx)

    @requires(Role.ADMIN)
    def add_member(self, ctx, email, role=Role.MEMBER):
        return self.workspaces.add_member(ctx, email, role)

    @requires(Role.ADMIN)
    def update_member_role(self, ctx, user_id, role):
        return self.workspaces.update_member_role(ctx, user_id, role)

    # Admins remove others; WorkspaceDirectory lets any member remove themselves
    @requires(Role.READ_ONLY)
    def remove_member(self, ctx, user_id):
        self.workspaces.remove_member(ctx, user_id)

    # ----------------------------------------------------------------- locations

    @requires(Role.READ_ONLY)
    def get_location(self, ctx, location_id):
        location = self.locations.get_location(ctx, location_id)
        return location, self.locations.breadcrumb(location)

    @requires(Role.READ_ONLY)
    def list_locations(self, ctx, parent_id=None):
        return self.locations.list_children(ctx, parent_id)

    @requires(Role.MEMBER)
    def create_location(self, ctx, name, parent_id=None, description=""):
        return self.locations.create_location(ctx, name, parent_id=parent_id, description=description)

    @requires(Role.MEMBER)
    def rename_location(self, ctx, location_id, name=None, description=None):
        return self.locations.rename_location(ctx, location_id, name=name, description=description)

    @requires(Role.ADMIN)
    def soft_delete_location(self, ctx, location_id):
        return self.locations.soft_delete_location(ctx, location_id)

    # --------------------------------------------------------------------- boxes

    @requires(Role.READ_ONLY)
    def get_box(self, ctx, box_id):
        return self.boxes.get_box(ctx, box_id)

    @requires(Role.READ_ONLY)
    def search_boxes(self, ctx, query=None, location_id=None, is_assigned=None, page=1,
                     per_page=DEFAULT_BOXES_PER_PAGE):
        return self.boxes.search_boxes(
            ctx, query=query, location_id=location_id, is_assigned=is_assigned, page=page, per_page=per_page
        )

    @requires(Role.MEMBER)
    def create_box(self, ctx, name, description="", tags=None, location_id=None, qr_code_id=None):
        return self.boxes.create_box(
            ctx, name, description=description, tags=tags, location_id=location_id, qr_code_id=qr_code_id
        )

    @requires(Role.MEMBER)
    def update_box(self, ctx, box_id, name=None, description=None, tags=None):
        return self.boxes.update_box(ctx, box_id, name=name, description=description, tags=tags)

    @requires(Role.MEMBER)
    def move_box(self, ctx, box_id, location_id):
        return self.boxes.move_box(ctx, box_id, location_id)

    @requires(Role.MEMBER)
    def attach_qr_code(self, ctx, box_id, qr_code_id):
        return self.boxes.attach_qr_code(ctx, box_id, qr_code_id)

    @requires(Role.READ_ONLY)
    def check_duplicate_box_name(self, ctx, name, exclude_box_id=None):
        return self.boxes.check_duplicate_name(ctx, name, exclude_box_id=exclude_box_id)

    @requires(Role.ADMIN)
    def delete_box(self, ctx, box_id):
        return self.boxes.delete_box(ctx, box_id)

    # ------------------------------------------------------------------ QR codes

    @requires(Role.MEMBER)
    def generate_qr_codes(self, ctx, quantity):
        return self.qr_codes.generate_batch(ctx, quantity)

    @requires(Role.READ_ONLY)
    def list_qr_codes(self, ctx, status=None):
        return self.qr_codes.list_codes(ctx, status)

    def resolve_qr_code(self, principal, short_code):
        """
        Find a scanned code and the box it labels.

        The code is looked up across workspaces first and the caller is then
        checked against the code's own workspace, so a scan works without
        knowing which workspace it came from.
        """
        with storage_errors(), transaction.atomic(using=self.using):
            qr_code = self.qr_codes.resolve(short_code)
            self.guard.authorize(principal, qr_code.workspace_id, Role.READ_ONLY)
            return qr_code
