# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count
from django.utils.html import format_html

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Members and their UPI handles.

    The API never edits members, so payment handles are kept up to date
    here. The list flags members who cannot be paid through a UPI link.
    """

    list_display = ['email', 'display_name', 'upi_badge', 'group_count', 'is_active']
    list_filter = ['is_active', 'is_staff']
    search_fields = ['email', 'display_name', 'upi_id']
    ordering = ['email']
    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Member', {'fields': ('display_name', 'upi_id')}),
        ('Access', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Activity', {'fields': ('created_at', 'last_login')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'upi_id', 'password1', 'password2'),
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            _group_count=Count('group_memberships', distinct=True)
        )

    def group_count(self, obj):
        return obj._group_count
    group_count.short_description = 'Groups'
    group_count.admin_order_field = '_group_count'

    def upi_badge(self, obj):
        colour = '#2E7D32' if obj.upi_id else '#9E9E9E'
        return format_html(
            '<span style="background: {}; color: white; padding: 2px 8px; '
            'border-radius: 8px;">{}</span>',
            colour,
            obj.upi_id or 'no UPI ID',
        )
    upi_badge.short_description = 'UPI'
    upi_badge.admin_order_field = 'upi_id'
