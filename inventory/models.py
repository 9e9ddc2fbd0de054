import logging
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxLengthValidator
from django.db import models
from django.db.models import Q, CheckConstraint
from django.db.models.signals import post_save
from django.dispatch import receiver

from .constants import (
    LOCATION_PATH_SEPARATOR,
    MAX_BOX_DESCRIPTION_LENGTH,
    MAX_BOX_NAME_LENGTH,
    MAX_LOCATION_DEPTH,
    MAX_LOCATION_DESCRIPTION_LENGTH,
    MAX_LOCATION_NAME_LENGTH,
    MAX_TAG_LENGTH,
    MAX_WORKSPACE_NAME_LENGTH,
)

logger = logging.getLogger(__name__)


# === TENANCY ================================================================

class Role(models.TextChoices):
    OWNER = "owner", "Owner"
    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"
    READ_ONLY = "read_only", "Read-only"


ROLE_RANK = {
    Role.READ_ONLY: 0,
    Role.MEMBER: 1,
    Role.ADMIN: 2,
    Role.OWNER: 3,
}


def role_satisfies(role: str, required: str | None) -> bool:
    """True if ``role`` is at least as privileged as ``required``."""
    if not required:
        return True
    return ROLE_RANK[Role(role)] >= ROLE_RANK[Role(required)]


class Workspace(models.Model):
    """Tenant boundary. Every location, box and QR code belongs to exactly one."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=MAX_WORKSPACE_NAME_LENGTH)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="owned_workspaces"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return self.name


class Membership(models.Model):
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="workspace_memberships"
    )
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["joined_at", "id"]
        indexes = [
            models.Index(fields=["user", "workspace"], name="membership_user_ws_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["workspace", "user"], name="uniq_workspace_member"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.workspace} [{self.role}]"


# === LOCATIONS ==============================================================

class LocationState(models.TextChoices):
    LIVE = "live", "Live"
    DELETED = "deleted", "Deleted"


class LocationQuerySet(models.QuerySet):
    def live(self):
        return self.filter(is_deleted=False)

    def subtree(self, location):
        """The location itself plus every descendant, by materialized path."""
        return self.filter(workspace_id=location.workspace_id).filter(
            Q(pk=location.pk) | Q(path__startswith=location.path + LOCATION_PATH_SEPARATOR)
        )


class Location(models.Model):
    """
    A node of the per-workspace location forest.

    ``path`` is the dot-joined chain of ancestor ids ending with the node's own
    id, so depth and ancestry are known without recursive queries and a rename
    never touches descendants. Deleted nodes keep their row and path.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="locations")
    parent = models.ForeignKey(
        "self", on_delete=models.CASCADE, null=True, blank=True, related_name="children"
    )
    name = models.CharField(max_length=MAX_LOCATION_NAME_LENGTH)
    slug = models.CharField(max_length=MAX_LOCATION_NAME_LENGTH * 2, editable=False)
    description = models.TextField(
        blank=True,
        max_length=MAX_LOCATION_DESCRIPTION_LENGTH,
        validators=[MaxLengthValidator(MAX_LOCATION_DESCRIPTION_LENGTH)],
    )
    path = models.CharField(max_length=200, editable=False)
    depth = models.PositiveSmallIntegerField(editable=False)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LocationQuerySet.as_manager()

    class Meta:
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["workspace", "parent", "is_deleted"], name="location_ws_parent_idx"),
            models.Index(fields=["path"], name="location_path_idx"),
        ]
        constraints = [
            # Roots and children need separate partial indexes: NULL parents never collide
            models.UniqueConstraint(
                fields=["workspace", "parent", "slug"],
                condition=Q(is_deleted=False, parent__isnull=False),
                name="uniq_live_child_location_slug",
            ),
            models.UniqueConstraint(
                fields=["workspace", "slug"],
                condition=Q(is_deleted=False, parent__isnull=True),
                name="uniq_live_root_location_slug",
            ),
            CheckConstraint(
                condition=Q(depth__gte=1, depth__lte=MAX_LOCATION_DEPTH),
                name="location_depth_range",
            ),
            CheckConstraint(
                condition=Q(is_deleted=False, deleted_at__isnull=True)
                | Q(is_deleted=True, deleted_at__isnull=False),
                name="location_deleted_at_matches_flag",
            ),
        ]

    @staticmethod
    def build_path(parent: "Location | None", location_id: uuid.UUID) -> str:
        if parent is None:
            return location_id.hex
        return f"{parent.path}{LOCATION_PATH_SEPARATOR}{location_id.hex}"

    @property
    def state(self) -> str:
        return LocationState.DELETED if self.is_deleted else LocationState.LIVE

    @property
    def ancestor_ids(self) -> list[uuid.UUID]:
        """Ids of the ancestors, root first, excluding the node itself."""
        return [uuid.UUID(hex=segment) for segment in self.path.split(LOCATION_PATH_SEPARATOR)[:-1]]

    def clean(self):
        super().clean()
        segments = (self.path or "").split(LOCATION_PATH_SEPARATOR)
        if self.depth != len(segments):
            raise ValidationError({"path": "Path and depth disagree."})
        if self.depth > MAX_LOCATION_DEPTH:
            raise ValidationError({"depth": f"Locations can be nested at most {MAX_LOCATION_DEPTH} levels deep."})
        if self.parent is not None and self.parent.workspace_id != self.workspace_id:
            raise ValidationError({"parent": "Parent belongs to another workspace."})

    def save(self, *args, **kwargs):
        """Override save to ensure clean() is called."""
        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name}{' (deleted)' if self.is_deleted else ''}"


# === BOXES ==================================================================

class Box(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="boxes")
    location = models.ForeignKey(
        Location, on_delete=models.SET_NULL, null=True, blank=True, related_name="boxes"
    )
    short_code = models.CharField(max_length=20, unique=True, editable=False)
    name = models.CharField(max_length=MAX_BOX_NAME_LENGTH)
    description = models.TextField(
        blank=True,
        max_length=MAX_BOX_DESCRIPTION_LENGTH,
        validators=[MaxLengthValidator(MAX_BOX_DESCRIPTION_LENGTH)],
    )
    tags = models.JSONField(default=list, blank=True)
    # Lowercase name, description and tags; the substring search runs against it
    search_text = models.TextField(blank=True, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "id"]
        indexes = [
            models.Index(fields=["workspace", "-created_at"], name="box_ws_created_idx"),
            models.Index(fields=["location"], name="box_location_idx"),
        ]

    def clean(self):
        """
        Validate model data before saving.
        Enforces business rules not covered by field validators.
        """
        super().clean()

        if not isinstance(self.tags, list) or not all(isinstance(t, str) for t in self.tags):
            raise ValidationError({"tags": "Tags must be a list of strings."})

        if any(not t or len(t) > MAX_TAG_LENGTH for t in self.tags):
            raise ValidationError({"tags": f"Tags must be 1 to {MAX_TAG_LENGTH} characters long."})

        if self.location_id is not None:
            location = self.location
            if location.workspace_id != self.workspace_id or location.is_deleted:
                raise ValidationError({"location": "Location is not available in this workspace."})

    def build_search_text(self) -> str:
        parts = [self.name or "", self.description or "", *(self.tags or [])]
        return " ".join(p for p in parts if p).lower()

    def save(self, *args, **kwargs):
        """Override save to ensure clean() is called and keep search_text current."""
        # Validate first: search_text assumes tags are already a list of strings
        self.full_clean(validate_unique=False, validate_constraints=False)
        self.search_text = self.build_search_text()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = {*update_fields, "search_text", "updated_at"}
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.short_code})"


# === QR CODES ===============================================================

class QrStatus(models.TextChoices):
    GENERATED = "generated", "Generated"
    ASSIGNED = "assigned", "Assigned"


class QrCode(models.Model):
    """
    Pre-printable identifier. Rows are never deleted except by workspace
    teardown, so printed labels stay valid and can be reused.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workspace = models.ForeignKey(Workspace, on_delete=models.CASCADE, related_name="qr_codes")
    short_code = models.CharField(max_length=20, unique=True)
    status = models.CharField(max_length=16, choices=QrStatus.choices, default=QrStatus.GENERATED)
    # RESTRICT: a box can only go away after its code was released (or with its workspace)
    box = models.OneToOneField(
        Box, on_delete=models.RESTRICT, null=True, blank=True, related_name="qr_code"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "short_code"]
        indexes = [
            models.Index(fields=["workspace", "status"], name="qrcode_ws_status_idx"),
        ]
        constraints = [
            CheckConstraint(
                condition=Q(status="generated", box__isnull=True)
                | Q(status="assigned", box__isnull=False),
                name="qrcode_status_matches_box",
            ),
        ]

    @property
    def is_assigned(self) -> bool:
        return self.status == QrStatus.ASSIGNED

    def __str__(self):
        return f"{self.short_code} [{self.status}]"


# === SIGNALS ================================================================

@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_default_workspace(sender, instance, created, **kwargs):
    """Give every newly registered user a personal workspace."""
    if not created or not getattr(settings, "CREATE_DEFAULT_WORKSPACE", True):
        return

    from .constants import DEFAULT_WORKSPACE_NAME
    from .services.workspaces import WorkspaceDirectory

    WorkspaceDirectory(using=kwargs.get("using") or "default").create_workspace(
        instance, DEFAULT_WORKSPACE_NAME
    )
