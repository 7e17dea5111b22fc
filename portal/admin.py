"""
Django admin registration for the gateway's audit trail.

Clinic data lives in the backend; the only local table is the audit log,
which is read-only here.
"""

from django.contrib import admin

from .models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'object_type', 'object_id', 'user_name', 'role', 'clinic_id')
    list_filter = ('action', 'role', 'object_type')
    search_fields = ('user_name', 'object_id', 'action')
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
