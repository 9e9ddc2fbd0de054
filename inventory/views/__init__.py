"""
Views for the inventory app.

- api: JSON endpoints for workspaces, members, locations, boxes and QR codes
- health: liveness and readiness probes
"""

from .api import (
    box_detail,
    box_duplicate_check,
    boxes,
    location_detail,
    locations,
    member_detail,
    members,
    qr_codes,
    resolve_qr_code,
    workspace_detail,
    workspaces,
)
from .health import liveness_check, readiness_check

__all__ = [
    "box_detail",
    "box_duplicate_check",
    "boxes",
    "liveness_check",
    "location_detail",
    "locations",
    "member_detail",
    "members",
    "qr_codes",
    "readiness_check",
    "resolve_qr_code",
    "workspace_detail",
    "workspaces",
]
