from django.conf import settings
from django.db import models
import uuid


def default_currency():
    return settings.SETTLEMENT_CURRENCY


class SplitType(models.TextChoices):
    EQUAL = 'equal', 'Equal'
    EXACT = 'exact', 'Exact amounts'
    PERCENTAGE = 'percentage', 'Percentage'


class ExpenseRecord(models.Model):
    """Shared expense paid by one member on behalf of the group."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expenses'
    )
    paid_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='expenses_paid'
    )
    
    # Minor units (paise)
    amount = models.BigIntegerField()
    currency = models.CharField(max_length=3, default=default_currency)
    
    description = models.CharField(max_length=200, blank=True)
    split_type = models.CharField(
        max_length=20,
        choices=SplitType.choices,
        default=SplitType.EQUAL
    )
    
    created_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'expense_records'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='expense_group_created_idx'),
            models.Index(fields=['paid_by', 'created_at'], name='expense_payer_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name='expense_amount_positive'),
        ]
        ordering = ['-created_at']
    
    def __str__(self):
        return f"{self.description or 'Expense'} - {self.amount} ({self.group.name})"


class SplitItem(models.Model):
    """One member's share of an expense."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    expense = models.ForeignKey(
        ExpenseRecord,
        on_delete=models.CASCADE,
        related_name='splits'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='expense_splits'
    )
    owed_amount = models.BigIntegerField()
    # Participant order at creation; remainder units went to the lowest positions
    position = models.PositiveSmallIntegerField(default=0)
    
    class Meta:
        db_table = 'split_items'
        unique_together = [['expense', 'user']]
        constraints = [
            models.CheckConstraint(condition=models.Q(owed_amount__gte=0), name='split_owed_non_negative'),
        ]
        ordering = ['expense', 'position']
    
    def __str__(self):
        return f"{self.user.get_display_name()} owes {self.owed_amount}"
