from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from .engine import SettlementStatus, format_major
from .models import PaymentMethod, SettlementEvent, SettlementRecord


# =============================================================================
# Input Serializers
# =============================================================================

class SettlementFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for settlement listing.

    Query Parameters:
        group (UUID): Only settlements of this group
        status (str): pending | paid_pending | confirmed | cancelled
    """

    group = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=SettlementStatus.choices, required=False)


class SettlementCreateSerializer(serializers.Serializer):
    """
    Validate input for recording a settlement.

    Fields:
        group (UUID): Group the debt belongs to
        to_user (UUID): Member being paid
        amount (int): Minor units (paise), positive
        method (str): upi | cash | other
        note (str): Optional note, also used as the UPI transaction note
    """

    group = serializers.UUIDField()
    to_user = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.UPI)
    note = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class MarkPaidInputSerializer(serializers.Serializer):
    """
    Validate input for marking a settlement as paid.

    Fields:
        payment_reference (str): Optional UPI transaction reference (UTR).
            Omit to keep the stored one.
    """

    payment_reference = serializers.CharField(max_length=64, required=False, allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class SettlementEventSerializer(serializers.ModelSerializer):
    actor = UserMinimalSerializer(read_only=True)

    class Meta:
        model = SettlementEvent
        fields = ['action', 'actor', 'from_status', 'to_status', 'payment_reference', 'created_at']
        read_only_fields = fields


class SettlementRecordSerializer(serializers.ModelSerializer):
    """Main serializer for settlement records."""

    from_user = UserMinimalSerializer(read_only=True)
    to_user = UserMinimalSerializer(read_only=True)
    cancelled_by = UserMinimalSerializer(read_only=True)
    amount_display = serializers.SerializerMethodField()
    counts_toward_balance = serializers.BooleanField(read_only=True)

    class Meta:
        model = SettlementRecord
        fields = [
            'id',
            'group',
            'from_user',
            'to_user',
            'amount',
            'amount_display',
            'currency',
            'method',
            'note',
            'status',
            'counts_toward_balance',
            'payment_reference',
            'paid_at',
            'confirmed_at',
            'cancelled_at',
            'cancelled_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_amount_display(self, obj) -> str:
        return format_major(obj.amount)


class SettlementDetailSerializer(SettlementRecordSerializer):
    """Settlement with its audit trail."""

    events = SettlementEventSerializer(many=True, read_only=True)

    class Meta(SettlementRecordSerializer.Meta):
        fields = SettlementRecordSerializer.Meta.fields + ['events']
        read_only_fields = fields


class MemberBalanceSerializer(serializers.Serializer):
    """One member's net position. Positive: is owed; negative: owes."""

    user = UserMinimalSerializer()
    amount = serializers.IntegerField()
    amount_display = serializers.CharField()


class SuggestedTransferSerializer(serializers.Serializer):
    from_user = UserMinimalSerializer()
    to_user = UserMinimalSerializer()
    amount = serializers.IntegerField()
    amount_display = serializers.CharField()
    group = serializers.UUIDField()


class GroupMemberBalanceSerializer(MemberBalanceSerializer):
    """Net position plus what the member paid and their share of expenses."""

    paid = serializers.IntegerField()
    owed = serializers.IntegerField()


class GroupBalancesSerializer(serializers.Serializer):
    group = serializers.UUIDField()
    currency = serializers.CharField()
    is_settled = serializers.BooleanField()
    total_spent = serializers.IntegerField()
    total_spent_display = serializers.CharField()
    balances = GroupMemberBalanceSerializer(many=True)
    transfers = SuggestedTransferSerializer(many=True)


class GlobalBalancesSerializer(serializers.Serializer):
    currency = serializers.CharField()
    is_settled = serializers.BooleanField()
    my_balance = serializers.IntegerField()
    my_balance_display = serializers.CharField()
    groups = serializers.ListField(child=serializers.UUIDField())
    balances = MemberBalanceSerializer(many=True)
    transfers = SuggestedTransferSerializer(many=True)


class PaymentLinkSerializer(serializers.Serializer):
    upi_link = serializers.CharField()
    app_links = serializers.DictField(child=serializers.CharField())
    payee_upi_id = serializers.CharField()
    payee_name = serializers.CharField()
    amount = serializers.IntegerField()
    amount_display = serializers.CharField()
    currency = serializers.CharField()
    note = serializers.CharField(allow_blank=True)
