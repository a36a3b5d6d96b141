from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from apps.settlements.engine.money import format_major
from .models import ExpenseRecord, SplitItem, SplitType


# =============================================================================
# Input Serializers
# =============================================================================

class ExpenseFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for expense listing.

    Query Parameters:
        group (UUID): Only expenses of this group
    """

    group = serializers.UUIDField(required=False)


class ShareInputSerializer(serializers.Serializer):
    """One member's share for exact or percentage splits."""

    user = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=0, required=False)
    percentage = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        required=False,
    )


class ExpenseCreateSerializer(serializers.Serializer):
    """
    Validate input for recording an expense.

    Fields:
        group (UUID): Group the expense belongs to
        amount (int): Total in minor units (paise)
        description (str): Optional label
        split_type (str): equal | exact | percentage
        split_members (list[UUID]): Equal split participants (default: everyone)
        shares (list): Per-member amounts or percentages
    """

    group = serializers.UUIDField()
    amount = serializers.IntegerField(min_value=1)
    description = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    split_type = serializers.ChoiceField(choices=SplitType.choices, default=SplitType.EQUAL)
    split_members = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=False,
        help_text="User IDs to split equally among. If not provided, splits among all group members."
    )
    shares = ShareInputSerializer(many=True, required=False)

    def validate(self, attrs):
        """Require the share field that matches the split type."""
        split_type = attrs['split_type']
        shares = attrs.get('shares')

        if split_type == SplitType.EQUAL:
            if shares:
                raise serializers.ValidationError({'shares': 'Not used for equal splits'})
            return attrs

        if not shares:
            raise serializers.ValidationError({'shares': f'Required for {split_type} splits'})

        field = 'amount' if split_type == SplitType.EXACT else 'percentage'
        values = {}
        for share in shares:
            if share.get(field) is None:
                raise serializers.ValidationError({'shares': f'Each share needs a {field}'})
            if share['user'] in values:
                raise serializers.ValidationError({'shares': 'Each member may appear only once'})
            values[share['user']] = share[field]

        attrs['shares'] = values
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class SplitItemSerializer(serializers.ModelSerializer):
    """Serializer for split items."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = SplitItem
        fields = ['user', 'owed_amount']
        read_only_fields = fields


class ExpenseRecordSerializer(serializers.ModelSerializer):
    """Main serializer for expense records."""

    paid_by = UserMinimalSerializer(read_only=True)
    splits = SplitItemSerializer(many=True, read_only=True)
    amount_display = serializers.SerializerMethodField()

    class Meta:
        model = ExpenseRecord
        fields = [
            'id',
            'group',
            'paid_by',
            'amount',
            'amount_display',
            'currency',
            'description',
            'split_type',
            'splits',
            'created_at',
        ]
        read_only_fields = fields

    def get_amount_display(self, obj) -> str:
        return format_major(obj.amount)
