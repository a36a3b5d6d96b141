# ==========================================
# apps/expenses/admin.py
# ==========================================

from django.contrib import admin
from apps.settlements.engine.money import format_major
from .models import ExpenseRecord, SplitItem


class SplitItemInline(admin.TabularInline):
    """Inline admin for split items within an expense."""
    model = SplitItem
    extra = 0
    fields = ['position', 'user', 'owed_amount']
    readonly_fields = ['position', 'user', 'owed_amount']

    def has_add_permission(self, request, obj=None):
        """Splits are created by the expense service."""
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ExpenseRecord)
class ExpenseRecordAdmin(admin.ModelAdmin):
    """
    Admin interface for expense records.

    Read-only: expenses are immutable once recorded and split.
    """

    list_display = [
        'description',
        'group',
        'paid_by',
        'get_amount_display',
        'split_type',
        'created_at',
    ]
    list_filter = ['split_type', 'group', 'created_at']
    search_fields = ['description', 'paid_by__email', 'group__name']
    readonly_fields = ['group', 'paid_by', 'amount', 'currency', 'split_type', 'created_at']
    inlines = [SplitItemInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def get_amount_display(self, obj):
        return f"{format_major(obj.amount)} {obj.currency}"
    get_amount_display.short_description = 'Amount'
    get_amount_display.admin_order_field = 'amount'

    def has_add_permission(self, request):
        return False

    def get_queryset(self, request):
        """Optimize query with select_related."""
        qs = super().get_queryset(request)
        return qs.select_related('group', 'paid_by')
