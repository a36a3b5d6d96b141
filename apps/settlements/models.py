from django.conf import settings
from django.db import models
import uuid

from .engine.ledger import SettlementStatus


def default_currency():
    return settings.SETTLEMENT_CURRENCY


class PaymentMethod(models.TextChoices):
    UPI = 'upi', 'UPI'
    CASH = 'cash', 'Cash'
    OTHER = 'other', 'Other'


class SettlementRecord(models.Model):
    """
    A member's claimed or confirmed payment to another member of a group.

    Records are never deleted; they only move through statuses, so the
    table doubles as the settlement audit trail. At most one non-terminal
    record may exist per (group, from_user, to_user).
    """
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.PROTECT,
        related_name='settlements'
    )
    from_user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='settlements_sent'
    )
    to_user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='settlements_received'
    )
    
    # Minor units (paise)
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, default=default_currency)
    method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.UPI
    )
    note = models.CharField(max_length=200, blank=True)
    
    status = models.CharField(
        max_length=20,
        choices=SettlementStatus.choices,
        default=SettlementStatus.PENDING
    )
    # External reference (UPI UTR number)
    payment_reference = models.CharField(max_length=64, blank=True)
    
    paid_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='settlements_cancelled'
    )
    
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'settlement_records'
        indexes = [
            models.Index(fields=['group', 'status'], name='settlement_group_status_idx'),
            models.Index(fields=['from_user', 'status'], name='settlement_from_status_idx'),
            models.Index(fields=['to_user', 'status'], name='settlement_to_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='settlement_amount_positive',
            ),
            models.CheckConstraint(
                condition=~models.Q(from_user=models.F('to_user')),
                name='settlement_distinct_parties',
            ),
            models.UniqueConstraint(
                fields=['group', 'from_user', 'to_user'],
                condition=models.Q(status__in=[status.value for status in SettlementStatus.open()]),
                name='settlement_one_open_per_pair',
            ),
        ]
        ordering = ['-created_at']
    
    def __str__(self):
        return f"{self.from_user} -> {self.to_user}: {self.amount} ({self.status})"
    
    @property
    def status_enum(self):
        return SettlementStatus(self.status)
    
    @property
    def counts_toward_balance(self):
        return self.status_enum.counts_toward_balance
    
    @property
    def is_terminal(self):
        return self.status_enum.is_terminal
    
    def is_party(self, user):
        return user.id in (self.from_user_id, self.to_user_id)


class SettlementAction(models.TextChoices):
    CREATE = 'create', 'Created'
    MARK_PAID = 'mark_paid', 'Marked paid'
    CONFIRM = 'confirm', 'Confirmed'
    CANCEL = 'cancel', 'Cancelled'


class SettlementEvent(models.Model):
    """Append-only log of settlement status changes."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    settlement = models.ForeignKey(
        SettlementRecord,
        on_delete=models.CASCADE,
        related_name='events'
    )
    actor = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='settlement_events'
    )
    action = models.CharField(max_length=20, choices=SettlementAction.choices)
    from_status = models.CharField(max_length=20, choices=SettlementStatus.choices, blank=True)
    to_status = models.CharField(max_length=20, choices=SettlementStatus.choices)
    payment_reference = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'settlement_events'
        indexes = [
            models.Index(fields=['settlement', 'created_at'], name='settlement_event_created_idx'),
        ]
        ordering = ['created_at', 'id']
    
    def __str__(self):
        return f"{self.settlement_id}: {self.from_status or '-'} -> {self.to_status}"
