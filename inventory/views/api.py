"""
JSON API for workspaces, locations, boxes and QR codes.

Every endpoint requires a logged-in user and answers with
``{"ok": true, ...}`` or ``{"ok": false, "error": {"code": ..., "message": ...}}``.
Authorization and all business rules live in InventoryService.
"""

import logging

from django.db import transaction
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from ..forms import (
    BoxDuplicateCheckForm,
    BoxForm,
    BoxSearchForm,
    LocationForm,
    LocationListForm,
    LocationUpdateForm,
    MemberForm,
    MemberRoleForm,
    QrBatchForm,
    QrCodeListForm,
    WorkspaceForm,
)
from ..models import Role
from .helpers import (
    api_login_required,
    bound_form,
    get_service,
    inventory_api,
    json_ok,
    serialize_box,
    serialize_location,
    serialize_member,
    serialize_qr_code,
    serialize_workspace,
    validated,
)

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------------------------------
# Workspaces
# -------------------------------------------------------------------------------------------------

@api_login_required
@require_http_methods(["GET", "POST"])
@inventory_api
def workspaces(request: HttpRequest) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        memberships = service.list_workspaces(request.user)
        return json_ok(workspaces=[serialize_workspace(m.workspace, m.role) for m in memberships])

    data = bound_form(WorkspaceForm, request)
    workspace = service.create_workspace(request.user, data["name"])
    return json_ok(status=201, workspace=serialize_workspace(workspace, Role.OWNER))


@api_login_required
@require_http_methods(["GET", "PATCH", "DELETE"])
@inventory_api
def workspace_detail(request: HttpRequest, workspace_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        ctx = service.get_workspace(request.user, workspace_id)
        return json_ok(workspace=serialize_workspace(ctx.workspace, ctx.role))

    if request.method == "PATCH":
        data = bound_form(WorkspaceForm, request)
        workspace = service.rename_workspace(request.user, workspace_id, data["name"])
        return json_ok(workspace=serialize_workspace(workspace, Role.OWNER))

    service.delete_workspace(request.user, workspace_id)
    return json_ok(deleted=str(workspace_id))


@api_login_required
@require_http_methods(["GET", "POST"])
@inventory_api
def members(request: HttpRequest, workspace_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        memberships = service.list_members(request.user, workspace_id)
        return json_ok(members=[serialize_member(m) for m in memberships])

    data = bound_form(MemberForm, request)
    membership = service.add_member(request.user, workspace_id, data["email"], data["role"])
    return json_ok(status=201, member=serialize_member(membership))


@api_login_required
@require_http_methods(["PATCH", "DELETE"])
@inventory_api
def member_detail(request: HttpRequest, workspace_id, user_id: int) -> JsonResponse:
    service = get_service()
    if request.method == "PATCH":
        data = bound_form(MemberRoleForm, request)
        membership = service.update_member_role(request.user, workspace_id, user_id, data["role"])
        return json_ok(member=serialize_member(membership))

    service.remove_member(request.user, workspace_id, user_id)
    return json_ok(removed=user_id)


# -------------------------------------------------------------------------------------------------
# Locations
# -------------------------------------------------------------------------------------------------

@api_login_required
@require_http_methods(["GET", "POST"])
@inventory_api
def locations(request: HttpRequest, workspace_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        params = validated(LocationListForm(request.GET))
        children = service.list_locations(request.user, workspace_id, params.get("parent_id"))
        return json_ok(locations=[serialize_location(loc) for loc in children])

    data = bound_form(LocationForm, request)
    location = service.create_location(
        request.user,
        workspace_id,
        data["name"],
        parent_id=data.get("parent_id"),
        description=data.get("description") or "",
    )
    return json_ok(status=201, location=serialize_location(location))


@api_login_required
@require_http_methods(["GET", "PATCH", "DELETE"])
@inventory_api
def location_detail(request: HttpRequest, workspace_id, location_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        location, breadcrumb = service.get_location(request.user, workspace_id, location_id)
        return json_ok(location=serialize_location(location, breadcrumb))

    if request.method == "PATCH":
        data = bound_form(LocationUpdateForm, request, partial=True)
        location = service.rename_location(
            request.user, workspace_id, location_id,
            name=data.get("name"), description=data.get("description"),
        )
        return json_ok(location=serialize_location(location))

    result = service.soft_delete_location(request.user, workspace_id, location_id)
    return json_ok(
        location=serialize_location(result.location),
        locations_deleted=result.locations_deleted,
        boxes_unassigned=result.boxes_unassigned,
    )


# -------------------------------------------------------------------------------------------------
# Boxes
# -------------------------------------------------------------------------------------------------

@api_login_required
@require_http_methods(["GET", "POST"])
@inventory_api
def boxes(request: HttpRequest, workspace_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        params = validated(BoxSearchForm(request.GET))
        page = service.search_boxes(
            request.user,
            workspace_id,
            query=params.get("q"),
            location_id=params.get("location_id"),
            is_assigned=params.get("is_assigned"),
            page=params.get("page") or 1,
            per_page=params.get("per_page"),
        )
        return json_ok(
            boxes=[serialize_box(box) for box in page.object_list],
            page=page.number,
            num_pages=page.paginator.num_pages,
            total=page.paginator.count,
        )

    data = bound_form(BoxForm, request)
    box = service.create_box(
        request.user,
        workspace_id,
        data["name"],
        description=data.get("description") or "",
        tags=data.get("tags") or [],
        location_id=data.get("location_id"),
        qr_code_id=data.get("qr_code_id"),
    )
    return json_ok(status=201, box=serialize_box(box))


def box_breadcrumb(service, box):
    # Only called after get_box has authorized the caller for the box's workspace
    return service.locations.breadcrumb(box.location) if box.location_id else None


@api_login_required
@require_POST
@inventory_api
def box_duplicate_check(request: HttpRequest, workspace_id) -> JsonResponse:
    """Tell a box form whether the name it is about to save is already taken. Writes nothing."""
    data = bound_form(BoxDuplicateCheckForm, request)
    result = get_service().check_duplicate_box_name(
        request.user, workspace_id, data["name"], exclude_box_id=data.get("exclude_box_id")
    )
    return json_ok(is_duplicate=result.is_duplicate, count=result.count)


@api_login_required
@require_http_methods(["GET", "PATCH", "DELETE"])
@inventory_api
def box_detail(request: HttpRequest, workspace_id, box_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        box = service.get_box(request.user, workspace_id, box_id)
        return json_ok(box=serialize_box(box, box_breadcrumb(service, box)))

    if request.method == "PATCH":
        data = bound_form(BoxForm, request, partial=True)
        edits = {field: data[field] for field in ("name", "description", "tags") if field in data}
        # One request, one outcome: a failed move or QR attach undoes the rename too
        with transaction.atomic():
            if edits:
                service.update_box(request.user, workspace_id, box_id, **edits)
            if "location_id" in data:
                service.move_box(request.user, workspace_id, box_id, data["location_id"])
            if data.get("qr_code_id") is not None:
                service.attach_qr_code(request.user, workspace_id, box_id, data["qr_code_id"])
            box = service.get_box(request.user, workspace_id, box_id)
        return json_ok(box=serialize_box(box, box_breadcrumb(service, box)))

    qr_code_released = service.delete_box(request.user, workspace_id, box_id)
    return json_ok(deleted=str(box_id), qr_code_released=qr_code_released)


# -------------------------------------------------------------------------------------------------
# QR codes
# -------------------------------------------------------------------------------------------------

@api_login_required
@require_http_methods(["GET", "POST"])
@inventory_api
def qr_codes(request: HttpRequest, workspace_id) -> JsonResponse:
    service = get_service()
    if request.method == "GET":
        params = validated(QrCodeListForm(request.GET))
        codes = service.list_qr_codes(request.user, workspace_id, params.get("status") or None)
        return json_ok(qr_codes=[serialize_qr_code(code) for code in codes])

    data = bound_form(QrBatchForm, request)
    codes = service.generate_qr_codes(request.user, workspace_id, data["quantity"])
    return json_ok(status=201, qr_codes=[serialize_qr_code(code) for code in codes])


@api_login_required
@require_GET
@inventory_api
def resolve_qr_code(request: HttpRequest, short_code: str) -> JsonResponse:
    """Scan target: find the code, and its box when it is assigned."""
    qr_code = get_service().resolve_qr_code(request.user, short_code)
    return json_ok(
        qr_code=serialize_qr_code(qr_code),
        box=serialize_box(qr_code.box) if qr_code.box_id else None,
    )
