from django.urls import path

from . import views

app_name = "inventory"

urlpatterns = [
    # Health checks (for load balancers and monitoring)
    path("health/", views.liveness_check, name="liveness"),
    path("health/readiness/", views.readiness_check, name="readiness"),

    # Workspaces and members
    path("workspaces/", views.workspaces, name="workspaces"),
    path("workspaces/<uuid:workspace_id>/", views.workspace_detail, name="workspace_detail"),
    path("workspaces/<uuid:workspace_id>/members/", views.members, name="members"),
    path("workspaces/<uuid:workspace_id>/members/<int:user_id>/", views.member_detail, name="member_detail"),

    # Locations
    path("workspaces/<uuid:workspace_id>/locations/", views.locations, name="locations"),
    path(
        "workspaces/<uuid:workspace_id>/locations/<uuid:location_id>/",
        views.location_detail,
        name="location_detail",
    ),

    # Boxes
    path("workspaces/<uuid:workspace_id>/boxes/", views.boxes, name="boxes"),
    path(
        "workspaces/<uuid:workspace_id>/boxes/check-duplicate/",
        views.box_duplicate_check,
        name="box_duplicate_check",
    ),
    path("workspaces/<uuid:workspace_id>/boxes/<uuid:box_id>/", views.box_detail, name="box_detail"),

    # QR codes
    path("workspaces/<uuid:workspace_id>/qr-codes/", views.qr_codes, name="qr_codes"),
    path("qr-codes/<str:short_code>/", views.resolve_qr_code, name="resolve_qr_code"),
]
