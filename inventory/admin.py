from django.contrib import admin
from django.contrib.auth import get_user_model
from auditlog.registry import auditlog
from .models import Workspace, Membership
from .models import Location, Box, QrCode

# Register models with auditlog for security audit trail
# This tracks all create, update, and delete operations on these models
auditlog.register(get_user_model(), exclude_fields=['password', 'last_login'])
auditlog.register(Workspace, exclude_fields=['created_at', 'updated_at'])
auditlog.register(Membership, exclude_fields=['joined_at'])
auditlog.register(Location, exclude_fields=['created_at', 'updated_at'])
auditlog.register(Box, exclude_fields=['search_text', 'created_at', 'updated_at'])
auditlog.register(QrCode, exclude_fields=['created_at'])


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    raw_id_fields = ("user",)

@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "created_at")
    search_fields = ("name", "owner__username", "owner__email")
    inlines = [MembershipInline]

@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("workspace", "user", "role", "joined_at")
    list_filter = ("role",)
    list_select_related = ("workspace", "user")
    search_fields = ("workspace__name", "user__username", "user__email")

@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "workspace", "parent", "depth", "is_deleted", "updated_at")
    list_filter = ("is_deleted", "depth")
    list_select_related = ("workspace", "parent")
    search_fields = ("name", "workspace__name")
    readonly_fields = ("slug", "path", "depth", "created_at", "updated_at", "deleted_at")

@admin.register(Box)
class BoxAdmin(admin.ModelAdmin):
    list_display = ("name", "short_code", "workspace", "location", "created_at")
    list_select_related = ("workspace", "location")
    search_fields = ("name", "short_code", "search_text")
    readonly_fields = ("short_code", "search_text", "created_at", "updated_at")

@admin.register(QrCode)
class QrCodeAdmin(admin.ModelAdmin):
    """
    QR codes are read-only here: status and box only change together, through
    the inventory services, so a half-edit cannot break the pairing.
    """
    list_display = ("short_code", "workspace", "status", "box", "created_at")
    list_filter = ("status",)
    list_select_related = ("workspace", "box")
    search_fields = ("short_code",)
    readonly_fields = ("short_code", "workspace", "status", "box", "created_at")
