"""
Shared helper functions and utilities for the JSON views.
Includes type hints for better code clarity and IDE support.
"""

import json
import logging
from functools import wraps
from typing import Any, Callable

from django.http import HttpRequest, JsonResponse

from ..exceptions import InventoryError, InvalidInput
from ..models import Box, Location, Membership, QrCode, Workspace
from ..services import InventoryService

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------------------------------
# JSON Response Helpers
# -------------------------------------------------------------------------------------------------

def json_ok(status: int = 200, **payload: Any) -> JsonResponse:
    """Return a successful JSON response with ok=True."""
    data = {"ok": True}
    data.update(payload)
    return JsonResponse(data, status=status)


def json_err(code: str, message: str, status: int = 400, **extra: Any) -> JsonResponse:
    """Return an error JSON response with ok=False."""
    error = {"code": code, "message": message}
    error.update(extra)
    return JsonResponse({"ok": False, "error": error}, status=status)


def json_error_from(exc: InventoryError) -> JsonResponse:
    response = JsonResponse({"ok": False, "error": exc.as_dict()}, status=exc.http_status)
    if exc.retryable:
        response["Retry-After"] = "1"
    return response


# -------------------------------------------------------------------------------------------------
# Request Helpers
# -------------------------------------------------------------------------------------------------

def get_service() -> InventoryService:
    return InventoryService()


def parse_json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode the request body as a JSON object. An empty body counts as {}."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidInput("Request body is not valid JSON.") from None
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object.")
    return data


def validated(form) -> dict[str, Any]:
    """Return cleaned data or raise InvalidInput carrying the form's field errors."""
    if not form.is_valid():
        fields = {name: [str(e) for e in errors] for name, errors in form.errors.items()}
        raise InvalidInput(fields=fields)
    return form.cleaned_data


def bound_form(form_class, request: HttpRequest, partial: bool = False) -> dict[str, Any]:
    return validated(form_class(parse_json_body(request), partial=partial))


# -------------------------------------------------------------------------------------------------
# View Decorators
# -------------------------------------------------------------------------------------------------

def api_login_required(view: Callable) -> Callable:
    """Like login_required, but answers 401 JSON instead of redirecting."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_err("not_authenticated", "Authentication required.", status=401)
        return view(request, *args, **kwargs)
    return wrapper


def inventory_api(view: Callable) -> Callable:
    """Render inventory errors as JSON and hide anything unexpected behind a 500."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except InventoryError as exc:
            return json_error_from(exc)
        except Exception:
            logger.exception(f"Error in {view.__name__}")
            return json_err("internal_error", "An unexpected error occurred.", status=500)
    return wrapper


# -------------------------------------------------------------------------------------------------
# Serialization Helpers
# -------------------------------------------------------------------------------------------------

def serialize_workspace(workspace: Workspace, role: str | None = None) -> dict[str, Any]:
    data = {
        "id": str(workspace.pk),
        "name": workspace.name,
        "owner_id": workspace.owner_id,
        "created_at": workspace.created_at.isoformat(),
    }
    if role is not None:
        data["role"] = str(role)
    return data


def serialize_member(membership: Membership) -> dict[str, Any]:
    return {
        "user_id": membership.user_id,
        "username": membership.user.get_username(),
        "email": membership.user.email,
        "role": membership.role,
        "joined_at": membership.joined_at.isoformat(),
    }


def serialize_location(location: Location, breadcrumb: list[Location] | None = None) -> dict[str, Any]:
    data = {
        "id": str(location.pk),
        "parent_id": str(location.parent_id) if location.parent_id else None,
        "name": location.name,
        "description": location.description,
        "depth": location.depth,
        "state": str(location.state),
        "created_at": location.created_at.isoformat(),
        "updated_at": location.updated_at.isoformat(),
    }
    if breadcrumb is not None:
        data["breadcrumb"] = [{"id": str(loc.pk), "name": loc.name} for loc in breadcrumb]
    return data


def serialize_qr_code(qr_code: QrCode) -> dict[str, Any]:
    return {
        "id": str(qr_code.pk),
        "workspace_id": str(qr_code.workspace_id),
        "short_code": qr_code.short_code,
        "status": qr_code.status,
        "box_id": str(qr_code.box_id) if qr_code.box_id else None,
        "created_at": qr_code.created_at.isoformat(),
    }


def serialize_box(box: Box, breadcrumb: list[Location] | None = None) -> dict[str, Any]:
    try:
        qr_code = box.qr_code
    except QrCode.DoesNotExist:
        qr_code = None
    location = box.location
    location_data = None
    if location is not None:
        location_data = {"id": str(location.pk), "name": location.name}
        if breadcrumb is not None:
            location_data["breadcrumb"] = [{"id": str(loc.pk), "name": loc.name} for loc in breadcrumb]
    return {
        "id": str(box.pk),
        "workspace_id": str(box.workspace_id),
        "short_code": box.short_code,
        "name": box.name,
        "description": box.description,
        "tags": box.tags,
        "location": location_data,
        "qr_code": qr_code.short_code if qr_code else None,
        "created_at": box.created_at.isoformat(),
        "updated_at": box.updated_at.isoformat(),
    }
