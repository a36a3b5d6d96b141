# ==========================================
# apps/settlements/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html

from .engine import SettlementStatus, format_major
from .models import SettlementEvent, SettlementRecord


class SettlementEventInline(admin.TabularInline):
    """Audit trail of a settlement."""
    model = SettlementEvent
    extra = 0
    fields = ['created_at', 'action', 'actor', 'from_status', 'to_status', 'payment_reference']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SettlementRecord)
class SettlementRecordAdmin(admin.ModelAdmin):
    """
    Admin interface for settlement records.

    Read-only: status changes go through the lifecycle service so that
    every change is guarded and audited.
    """

    list_display = [
        'from_user',
        'to_user',
        'group',
        'get_amount_display',
        'status_badge',
        'method',
        'created_at',
    ]
    list_filter = ['status', 'method', 'group', 'created_at']
    search_fields = [
        'from_user__email',
        'to_user__email',
        'group__name',
        'payment_reference',
    ]
    readonly_fields = [
        'group', 'from_user', 'to_user', 'amount', 'currency', 'method', 'note',
        'status', 'payment_reference', 'paid_at', 'confirmed_at',
        'cancelled_at', 'cancelled_by', 'created_at', 'updated_at',
    ]
    inlines = [SettlementEventInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def get_amount_display(self, obj):
        return f"{format_major(obj.amount)} {obj.currency}"
    get_amount_display.short_description = 'Amount'
    get_amount_display.admin_order_field = 'amount'

    def status_badge(self, obj):
        """Display settlement status as colored badge."""
        colors = {
            SettlementStatus.PENDING: ('#E5C49A', '#2C1810'),
            SettlementStatus.PAID_PENDING: ('#A47449', 'white'),
            SettlementStatus.CONFIRMED: ('#6B8E5E', 'white'),
            SettlementStatus.CANCELLED: ('#B85C5C', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('group', 'from_user', 'to_user')
