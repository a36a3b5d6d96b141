from rest_framework import serializers

from .models import User


class UserMinimalSerializer(serializers.ModelSerializer):
    """A member as nested in balances, transfers and settlements."""

    display_name = serializers.CharField(source='get_display_name', read_only=True)
    has_upi = serializers.BooleanField(source='has_payment_handle', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name', 'has_upi']
        read_only_fields = fields
