"""
Workspace membership checks.

Every inventory operation runs against a WorkspaceContext produced here.
A principal that is not a member of the workspace gets the same answer as
one asking for a workspace that does not exist.
"""
import logging
from dataclasses import dataclass

from ..exceptions import InsufficientRole, NotAMember
from ..models import Membership, Role, Workspace, role_satisfies
from ..utils import to_uuid
from .base import StoreComponent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceContext:
    workspace: Workspace
    principal: object
    role: str

    @property
    def workspace_id(self):
        return self.workspace.pk

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    def has_role(self, required: str | None) -> bool:
        return role_satisfies(self.role, required)


class TenantGuard(StoreComponent):

    def authorize(self, principal, workspace_id, required_role: str | None = None) -> WorkspaceContext:
        """
        Resolve the caller's membership in ``workspace_id``.

        Raises NotAMember for anonymous callers, unknown workspaces and
        non-members alike, and InsufficientRole when the membership exists
        but ranks below ``required_role``.
        """
        if principal is None or not getattr(principal, "is_authenticated", False):
            raise NotAMember()

        pk = to_uuid(workspace_id)
        if pk is None:
            raise NotAMember()

        membership = (
            Membership.objects.using(self.using)
            .select_related("workspace")
            .filter(workspace_id=pk, user_id=principal.pk)
            .first()
        )
        if membership is None:
            logger.warning(f"User {principal.pk} denied access to workspace {pk}: not a member")
            raise NotAMember()

        if not role_satisfies(membership.role, required_role):
            logger.warning(
                f"User {principal.pk} denied {required_role} access to workspace {pk} "
                f"(role {membership.role})"
            )
            raise InsufficientRole(required_role=str(required_role), role=membership.role)

        return WorkspaceContext(workspace=membership.workspace, principal=principal, role=membership.role)
