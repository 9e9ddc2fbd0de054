"""
Workspaces and their member lists.

Role rules on top of the plain rank check done by TenantGuard:
only owners hand out, take away or change the owner role, and a workspace
never loses its last owner.
"""
import logging

from django.contrib.auth import get_user_model

from ..exceptions import InsufficientRole, InvalidInput, LastOwnerProtected, NotFound
from ..models import Membership, Role, Workspace
from ..utils import sanitize_text
from .base import StoreComponent

logger = logging.getLogger(__name__)


class WorkspaceDirectory(StoreComponent):

    def _memberships(self):
        return Membership.objects.using(self.using)

    def create_workspace(self, principal, name: str) -> Workspace:
        """Create a workspace with ``principal`` as its first owner."""
        name = self._clean_name(name)
        with self.atomic():
            workspace = Workspace(name=name, owner=principal)
            self.validate(workspace)
            workspace.save(using=self.using, force_insert=True)
            self._memberships().create(workspace=workspace, user=principal, role=Role.OWNER)

        logger.info(f"Workspace {workspace.pk} created by user {principal.pk}")
        return workspace

    def memberships_for(self, principal) -> list[Membership]:
        """The caller's memberships, one per workspace, ordered by workspace name."""
        return list(
            self._memberships()
            .select_related("workspace")
            .filter(user_id=principal.pk)
            .order_by("workspace__name", "workspace_id")
        )

    def rename_workspace(self, ctx, name: str) -> Workspace:
        workspace = ctx.workspace
        workspace.name = self._clean_name(name)
        self.validate(workspace)
        workspace.save(using=self.using, update_fields=["name", "updated_at"])
        return workspace

    def delete_workspace(self, ctx) -> None:
        """Tear down a workspace with every location, box, QR code and membership in it."""
        workspace_pk = ctx.workspace_id
        with self.atomic():
            Workspace.objects.using(self.using).filter(pk=workspace_pk).delete()
        logger.info(f"Workspace {workspace_pk} deleted by user {ctx.principal.pk}")

    def list_members(self, ctx) -> list[Membership]:
        return list(self._memberships().select_related("user").filter(workspace_id=ctx.workspace_id))

    def add_member(self, ctx, email: str, role: str = Role.MEMBER) -> Membership:
        """Add the user registered under ``email``."""
        role = self._parse_role(role)
        if role == Role.OWNER and not ctx.is_owner:
            raise InsufficientRole("Only owners can grant the owner role.")

        user = (
            get_user_model()._default_manager.db_manager(self.using)
            .filter(email__iexact=(email or "").strip())
            .order_by("pk")
            .first()
        )
        if user is None or not (email or "").strip():
            raise NotFound("No user is registered with this email address.")

        with self.atomic():
            if self._memberships().filter(workspace_id=ctx.workspace_id, user=user).exists():
                raise InvalidInput(
                    "This user is already a member of the workspace.",
                    fields={"email": ["Already a member."]},
                )
            membership = self._memberships().create(workspace=ctx.workspace, user=user, role=role)

        logger.info(f"User {user.pk} added to workspace {ctx.workspace_id} as {role}")
        return membership

    def update_member_role(self, ctx, user_id, role: str) -> Membership:
        role = self._parse_role(role)
        with self.atomic():
            membership = self._get_membership(ctx, user_id)
            if (membership.role == Role.OWNER or role == Role.OWNER) and not ctx.is_owner:
                raise InsufficientRole("Only owners can change the owner role.")
            if membership.role == role:
                return membership
            if membership.role == Role.OWNER:
                self._ensure_other_owner(ctx, membership)

            previous = membership.role
            membership.role = role
            membership.save(using=self.using, update_fields=["role"])
            if previous == Role.OWNER:
                self._hand_over_ownership(ctx, membership.user_id)

        logger.info(f"User {membership.user_id} in workspace {ctx.workspace_id}: {previous} -> {role}")
        return membership

    def remove_member(self, ctx, user_id) -> None:
        """
        Remove a member. Admins may remove others; any member may remove
        themselves. Owners can only be removed by an owner or by leaving.
        """
        with self.atomic():
            membership = self._get_membership(ctx, user_id)
            leaving = membership.user_id == ctx.principal.pk

            if not leaving and not ctx.has_role(Role.ADMIN):
                raise InsufficientRole(required_role=Role.ADMIN.value, role=ctx.role)
            if membership.role == Role.OWNER:
                if not leaving and not ctx.is_owner:
                    raise InsufficientRole("Only owners can remove an owner.")
                self._ensure_other_owner(ctx, membership)

            membership.delete(using=self.using)
            self._hand_over_ownership(ctx, membership.user_id)

        logger.info(f"User {membership.user_id} removed from workspace {ctx.workspace_id}")

    def _get_membership(self, ctx, user_id) -> Membership:
        try:
            user_pk = int(user_id)
        except (TypeError, ValueError):
            raise NotFound("Member not found.") from None
        membership = (
            self._memberships()
            .select_for_update()
            .filter(workspace_id=ctx.workspace_id, user_id=user_pk)
            .first()
        )
        if membership is None:
            raise NotFound("Member not found.")
        return membership

    def _ensure_other_owner(self, ctx, membership):
        # Lock every owner row so two owners cannot demote each other at once
        owners = list(
            self._memberships()
            .select_for_update()
            .filter(workspace_id=ctx.workspace_id, role=Role.OWNER)
            .exclude(pk=membership.pk)
            .values_list("pk", flat=True)
        )
        if not owners:
            raise LastOwnerProtected()

    def _hand_over_ownership(self, ctx, departed_user_id):
        """Point ``Workspace.owner`` at the longest-standing owner if it named the departed user."""
        workspace = Workspace.objects.using(self.using).select_for_update().get(pk=ctx.workspace_id)
        if workspace.owner_id != departed_user_id:
            return
        successor = (
            self._memberships()
            .filter(workspace_id=ctx.workspace_id, role=Role.OWNER)
            .order_by("joined_at", "id")
            .first()
        )
        if successor is not None:
            workspace.owner_id = successor.user_id
            workspace.save(using=self.using, update_fields=["owner", "updated_at"])

    def _parse_role(self, role) -> Role:
        if role not in Role.values:
            raise InvalidInput(
                "Unknown role.", fields={"role": [f"Choose one of: {', '.join(Role.values)}."]}
            )
        return Role(role)

    def _clean_name(self, name) -> str:
        name = sanitize_text(name or "")
        if not name:
            raise InvalidInput("Name is required.", fields={"name": ["This field is required."]})
        return name
