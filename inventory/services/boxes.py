import logging
from dataclasses import dataclass

from django.core.paginator import Page, Paginator

from ..constants import DEFAULT_BOXES_PER_PAGE, MAX_BOXES_PER_PAGE
from ..exceptions import InvalidInput, NotFound, QrCodeAlreadyAssigned
from ..models import Box, QrCode
from ..utils import generate_box_short_code, normalize_tags, sanitize_text, to_uuid
from .base import StoreComponent
from .locations import LocationHierarchy
from .qr_codes import QrCodeLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateNameCheck:
    is_duplicate: bool
    count: int


class BoxRegistry(StoreComponent):
    """
    Boxes: create, edit, move, delete and search.

    Creating a box with a QR code claims the code in the same transaction,
    so the box row and the claim commit or roll back together.
    """

    def __init__(self, using: str, locations: LocationHierarchy, qr_codes: QrCodeLedger):
        super().__init__(using)
        self.locations = locations
        self.qr_codes = qr_codes

    def _boxes(self):
        return Box.objects.using(self.using)

    def get_box(self, ctx, box_id, for_update: bool = False) -> Box:
        pk = to_uuid(box_id)
        if pk is None:
            raise NotFound("Box not found.")
        qs = self._boxes().filter(workspace_id=ctx.workspace_id, pk=pk)
        if for_update:
            qs = qs.select_for_update()
        else:
            qs = qs.select_related("location", "qr_code")
        box = qs.first()
        if box is None:
            raise NotFound("Box not found.")
        return box

    def create_box(self, ctx, name: str, description: str = "", tags=None,
                   location_id=None, qr_code_id=None) -> Box:
        fields = self._clean_fields(name=name, description=description, tags=tags)
        if "name" not in fields:
            raise InvalidInput("Name is required.", fields={"name": ["This field is required."]})

        with self.atomic():
            location = None
            if location_id is not None:
                location = self.locations.get_location(ctx, location_id, for_update=True)

            qr_code = self.qr_codes.get_claimable(ctx, qr_code_id) if qr_code_id is not None else None

            self.validate(Box(workspace=ctx.workspace, location=location, **fields), exclude=["short_code"])
            box = self.insert_with_unique_code(
                lambda: Box(
                    workspace=ctx.workspace,
                    location=location,
                    short_code=generate_box_short_code(),
                    **fields,
                )
            )
            if qr_code is not None:
                self.qr_codes.assign(qr_code.pk, box)
                # assign() binds through a queryset update; reload so box.qr_code is current
                box = self.get_box(ctx, box.pk)

        logger.info(
            f"Box {box.pk} created in workspace {ctx.workspace_id}"
            f"{f' with QR code {qr_code.short_code}' if qr_code else ''}"
        )
        return box

    def update_box(self, ctx, box_id, name: str | None = None, description: str | None = None,
                   tags=None) -> Box:
        """Rename and/or retag a box. Fields left as None are untouched."""
        fields = self._clean_fields(name=name, description=description, tags=tags)
        with self.atomic():
            box = self.get_box(ctx, box_id, for_update=True)
            if fields:
                for field, value in fields.items():
                    setattr(box, field, value)
                self.validate(box)
                box.save(using=self.using, update_fields=list(fields))
        return box

    def move_box(self, ctx, box_id, location_id) -> Box:
        """Move a box to a live location, or unassign it with ``location_id=None``."""
        with self.atomic():
            box = self.get_box(ctx, box_id, for_update=True)
            location = None
            if location_id is not None:
                location = self.locations.get_location(ctx, location_id, for_update=True)

            if box.location_id == (location.pk if location else None):
                return box

            box.location = location
            self.validate(box)
            box.save(using=self.using, update_fields=["location"])

        logger.info(f"Box {box.pk} moved to {location.pk if location else 'no location'}")
        return box

    def attach_qr_code(self, ctx, box_id, qr_code_id) -> Box:
        """Give an existing box, created without one, its QR code."""
        with self.atomic():
            box = self.get_box(ctx, box_id, for_update=True)
            if QrCode.objects.using(self.using).filter(box=box).exists():
                raise QrCodeAlreadyAssigned("This box already has a QR code.")
            qr_code = self.qr_codes.get_claimable(ctx, qr_code_id)
            self.qr_codes.assign(qr_code.pk, box)
            box = self.get_box(ctx, box.pk)
        return box

    def delete_box(self, ctx, box_id) -> bool:
        """Delete a box, releasing its QR code first. Returns True if a code was released."""
        with self.atomic():
            box = self.get_box(ctx, box_id, for_update=True)
            released = self.qr_codes.release(box)
            box_pk = box.pk
            box.delete(using=self.using)

        logger.info(f"Box {box_pk} deleted from workspace {ctx.workspace_id}")
        return released

    def check_duplicate_name(self, ctx, name: str, exclude_box_id=None) -> DuplicateNameCheck:
        """
        Count boxes in the workspace already called ``name``, ignoring case.

        Advisory only: box names need not be unique, so callers use this to
        warn before saving. ``exclude_box_id`` leaves out the box being edited.
        """
        cleaned = sanitize_text(name)
        if not cleaned:
            raise InvalidInput("Name is required.", fields={"name": ["This field is required."]})
        qs = self._boxes().filter(workspace_id=ctx.workspace_id, name__iexact=cleaned)
        if exclude_box_id is not None:
            exclude_pk = to_uuid(exclude_box_id)
            if exclude_pk is None:
                raise InvalidInput("Invalid box id.", fields={"exclude_box_id": ["Enter a valid UUID."]})
            qs = qs.exclude(pk=exclude_pk)
        count = qs.count()
        return DuplicateNameCheck(is_duplicate=count > 0, count=count)

    def search_boxes(self, ctx, query: str | None = None, location_id=None, is_assigned: bool | None = None,
                     page=1, per_page=DEFAULT_BOXES_PER_PAGE) -> Page:
        """
        Page through a workspace's boxes, newest first.

        Every whitespace-separated term of ``query`` must occur somewhere in
        the box's name, description or tags, ignoring case.
        """
        qs = self._boxes().filter(workspace_id=ctx.workspace_id).select_related("location", "qr_code")

        for term in (query or "").lower().split():
            qs = qs.filter(search_text__icontains=term)

        if location_id is not None:
            location_pk = to_uuid(location_id)
            if location_pk is None:
                raise InvalidInput("Invalid location id.", fields={"location_id": ["Enter a valid UUID."]})
            qs = qs.filter(location_id=location_pk)

        if is_assigned is not None:
            qs = qs.filter(location__isnull=not is_assigned)

        per_page = DEFAULT_BOXES_PER_PAGE if per_page is None else int(per_page)
        per_page = max(1, min(per_page, MAX_BOXES_PER_PAGE))
        paginator = Paginator(qs.order_by("-created_at", "id"), per_page)
        return paginator.get_page(page)

    def _clean_fields(self, name=None, description=None, tags=None) -> dict:
        fields = {}
        if name is not None:
            fields["name"] = sanitize_text(name)
            if not fields["name"]:
                raise InvalidInput("Name is required.", fields={"name": ["This field is required."]})
        if description is not None:
            fields["description"] = sanitize_text(description)
        if tags is not None:
            if isinstance(tags, str) or not isinstance(tags, (list, tuple)):
                raise InvalidInput("Tags must be a list.", fields={"tags": ["Tags must be a list of strings."]})
            fields["tags"] = normalize_tags(tags)
        return fields
