"""
Location hierarchy: a forest of named places, at most five levels deep.
"""
import logging
from dataclasses import dataclass

from django.db import IntegrityError
from django.utils import timezone

from ..constants import MAX_LOCATION_DEPTH
from ..exceptions import DuplicateSiblingName, InvalidInput, LocationNotFound, MaxDepthExceeded
from ..models import Box, Location
from ..utils import normalize_location_name, sanitize_text, to_uuid
from .base import StoreComponent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoftDeleteResult:
    location: Location
    locations_deleted: int
    boxes_unassigned: int


class LocationHierarchy(StoreComponent):

    def _locations(self):
        return Location.objects.using(self.using)

    def get_location(self, ctx, location_id, for_update: bool = False) -> Location:
        """Fetch a live location of the context's workspace or raise LocationNotFound."""
        pk = to_uuid(location_id)
        if pk is None:
            raise LocationNotFound()
        qs = self._locations().live().filter(workspace_id=ctx.workspace_id, pk=pk)
        if for_update:
            qs = qs.select_for_update()
        location = qs.first()
        if location is None:
            raise LocationNotFound()
        return location

    def list_children(self, ctx, parent_id=None) -> list[Location]:
        qs = self._locations().live().filter(workspace_id=ctx.workspace_id)
        if parent_id is None:
            qs = qs.filter(parent__isnull=True)
        else:
            qs = qs.filter(parent=self.get_location(ctx, parent_id))
        return list(qs.order_by("name", "id"))

    def breadcrumb(self, location: Location) -> list[Location]:
        """Ancestors root first, ending with the location itself."""
        ancestor_ids = location.ancestor_ids
        if not ancestor_ids:
            return [location]
        by_id = {loc.pk: loc for loc in self._locations().filter(pk__in=ancestor_ids)}
        return [by_id[pk] for pk in ancestor_ids if pk in by_id] + [location]

    def create_location(self, ctx, name: str, parent_id=None, description: str = "") -> Location:
        name, slug = self._clean_name(name)
        with self.atomic():
            parent = None
            if parent_id is not None:
                # Locked so a concurrent soft delete of the parent cannot interleave
                parent = self.get_location(ctx, parent_id, for_update=True)

            depth = 1 if parent is None else parent.depth + 1
            if depth > MAX_LOCATION_DEPTH:
                raise MaxDepthExceeded(max_depth=MAX_LOCATION_DEPTH)

            self._ensure_unique_sibling(ctx, parent, slug)
            location = Location(
                workspace=ctx.workspace,
                parent=parent,
                name=name,
                slug=slug,
                description=sanitize_text(description or ""),
                depth=depth,
            )
            location.path = Location.build_path(parent, location.pk)
            self.validate(location)
            self._save(location, force_insert=True)

        logger.info(f"Location {location.pk} created in workspace {ctx.workspace_id} at depth {depth}")
        return location

    def rename_location(self, ctx, location_id, name: str | None = None, description: str | None = None) -> Location:
        """Change name and/or description. The path is id-based and never changes."""
        with self.atomic():
            location = self.get_location(ctx, location_id, for_update=True)
            update_fields = []
            if name is not None:
                name, slug = self._clean_name(name)
                if slug != location.slug:
                    self._ensure_unique_sibling(ctx, location.parent, slug, exclude_pk=location.pk)
                location.name, location.slug = name, slug
                update_fields += ["name", "slug"]
            if description is not None:
                location.description = sanitize_text(description)
                update_fields.append("description")
            if update_fields:
                self.validate(location)
                self._save(location, update_fields=[*update_fields, "updated_at"])
        return location

    def soft_delete_location(self, ctx, location_id) -> SoftDeleteResult:
        """
        Mark a location and its whole live subtree deleted.

        Boxes stored anywhere in the subtree become unassigned in the same
        transaction. Deleting an already deleted location raises
        LocationNotFound.
        """
        now = timezone.now()
        with self.atomic():
            location = self.get_location(ctx, location_id, for_update=True)
            subtree = list(self._locations().live().subtree(location).select_for_update())

            boxes_unassigned = (
                Box.objects.using(self.using)
                .filter(workspace_id=ctx.workspace_id, location__in=[loc.pk for loc in subtree])
                .update(location=None, updated_at=now)
            )
            for node in subtree:
                node.is_deleted = True
                node.deleted_at = now
                node.save(using=self.using, update_fields=["is_deleted", "deleted_at", "updated_at"])
                if node.pk == location.pk:
                    location = node

        logger.info(
            f"Location {location.pk} deleted in workspace {ctx.workspace_id}: "
            f"{len(subtree)} location(s), {boxes_unassigned} box(es) unassigned"
        )
        return SoftDeleteResult(
            location=location, locations_deleted=len(subtree), boxes_unassigned=boxes_unassigned
        )

    def _clean_name(self, name) -> tuple[str, str]:
        name = sanitize_text(name or "")
        if not name:
            raise InvalidInput("Name is required.", fields={"name": ["This field is required."]})
        slug = normalize_location_name(name)
        if not slug:
            raise InvalidInput(
                "Name must contain letters or digits.",
                fields={"name": ["Name must contain letters or digits."]},
            )
        return name, slug

    def _ensure_unique_sibling(self, ctx, parent, slug, exclude_pk=None):
        siblings = self._locations().live().filter(workspace_id=ctx.workspace_id, parent=parent, slug=slug)
        if exclude_pk is not None:
            siblings = siblings.exclude(pk=exclude_pk)
        if siblings.exists():
            raise DuplicateSiblingName()

    def _save(self, location, **kwargs):
        # The partial unique constraints are the final word when two writers race
        try:
            with self.atomic():
                location.save(using=self.using, **kwargs)
        except IntegrityError as exc:
            raise DuplicateSiblingName() from exc
