# ==========================================
# apps/groups/models.py
# ==========================================

import uuid

from django.db import models


class Group(models.Model):
    """
    People who share expenses.

    Balances, suggested transfers and settlements are all scoped to one
    group. Groups are created in the admin or by fixtures.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='owned_groups'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        ordering = ['created_at', 'id']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()


class GroupMembership(models.Model):
    # joined_at then id is the member order used when a split leaves a remainder
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='group_memberships'
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_memberships'
        constraints = [
            models.UniqueConstraint(fields=['group', 'user'], name='membership_unique_member'),
        ]
        indexes = [
            models.Index(fields=['group', 'joined_at'], name='membership_order_idx'),
        ]
        ordering = ['joined_at', 'id']

    def __str__(self):
        return f"{self.user.get_display_name()} @ {self.group.name}"
