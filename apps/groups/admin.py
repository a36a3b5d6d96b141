# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from django.db.models import Count, OuterRef, Q, Subquery, Sum

from apps.expenses.models import ExpenseRecord
from apps.groups.models import Group, GroupMembership
from apps.settlements.engine import SettlementStatus, format_major


class GroupMembershipInline(admin.TabularInline):
    """Members in membership order, which also decides split remainders."""
    model = GroupMembership
    extra = 0
    fields = ['user', 'joined_at']
    readonly_fields = ['joined_at']
    ordering = ['joined_at', 'id']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """
    Groups are managed here only; the API has no group endpoints.

    The list shows how much was spent and how many settlements are
    still open in each group.
    """

    list_display = [
        'name',
        'owner',
        'member_count',
        'get_total_spent',
        'open_settlement_count',
        'created_at',
    ]
    search_fields = ['name', 'owner__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [GroupMembershipInline]
    ordering = ['-created_at']

    def get_queryset(self, request):
        qs = super().get_queryset(request).select_related('owner')
        spent = (
            ExpenseRecord.objects
            .filter(group=OuterRef('pk'))
            .order_by()
            .values('group')
            .annotate(total=Sum('amount'))
            .values('total')
        )
        return qs.annotate(
            _member_count=Count('memberships', distinct=True),
            _total_spent=Subquery(spent),
            _open_settlements=Count(
                'settlements',
                filter=Q(settlements__status__in=SettlementStatus.open()),
                distinct=True,
            ),
        )

    def member_count(self, obj):
        return obj._member_count
    member_count.short_description = 'Members'
    member_count.admin_order_field = '_member_count'

    def get_total_spent(self, obj):
        return format_major(obj._total_spent or 0)
    get_total_spent.short_description = 'Spent'

    def open_settlement_count(self, obj):
        return obj._open_settlements
    open_settlement_count.short_description = 'Open settlements'
