"""
Settlement lifecycle service.

A settlement moves ``pending -> paid_pending -> confirmed``, and may be
cancelled while still open. Every write is a single conditional statement:
creation relies on the partial unique constraint (one open settlement per
group, payer and payee), and transitions are compare-and-swap updates
filtered on the exact status just read, so audit events always name the
status that was replaced. A writer that loses a race re-reads the row,
retries while the settlement is still open and otherwise gets a typed
error, never a silent overwrite.
"""

import logging
from typing import Optional
from uuid import UUID

from django.db import IntegrityError, models, transaction
from django.db.models import Q, QuerySet, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import GroupMembership
from apps.groups.services import get_group_by_id, require_membership
from apps.settlements.engine import SettlementStatus
from apps.settlements.exceptions import (
    InvalidAmountError,
    InvalidSettlementPartiesError,
    InvalidSettlementTransitionError,
    MemberNotFoundError,
    SettlementConflictError,
    SettlementNotFoundError,
    SettlementPermissionError,
)
from apps.settlements.models import (
    PaymentMethod,
    SettlementAction,
    SettlementEvent,
    SettlementRecord,
)


logger = logging.getLogger(__name__)


def _visible_settlements(user: User) -> QuerySet[SettlementRecord]:
    """Settlements the user is a party to or that belong to one of their groups."""
    return (
        SettlementRecord.objects
        .filter(
            Q(from_user=user) |
            Q(to_user=user) |
            Q(group__memberships__user=user)
        )
        .select_related('group', 'from_user', 'to_user', 'cancelled_by')
        .distinct()
    )


def _record_event(settlement, actor, action, from_status, to_status, payment_reference=''):
    SettlementEvent.objects.create(
        settlement=settlement,
        actor=actor,
        action=action,
        from_status=from_status,
        to_status=to_status,
        payment_reference=payment_reference or '',
    )


def _reject_transition(settlement, action, user):
    logger.warning(
        "Rejected %s on settlement %s in status %s by user %s",
        action, settlement.id, settlement.status, user.id,
    )
    return InvalidSettlementTransitionError(
        f"Cannot {action.replace('_', ' ')} a settlement that is {settlement.status}"
    )


def _deny(settlement, action, user, message):
    logger.warning(
        "Denied %s on settlement %s to user %s", action, settlement.id, user.id,
    )
    return SettlementPermissionError(message)


def get_settlement(*, settlement_id: UUID, user: User) -> SettlementRecord:
    """
    Get a settlement the user may see.

    Raises:
        SettlementNotFoundError: If it doesn't exist or isn't visible to user
    """
    try:
        return _visible_settlements(user).get(id=settlement_id)
    except SettlementRecord.DoesNotExist:
        raise SettlementNotFoundError(f"Settlement {settlement_id} not found")


def list_settlements(
    *,
    user: User,
    group_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> QuerySet[SettlementRecord]:
    """Settlements visible to the user, newest first, optionally filtered."""
    queryset = _visible_settlements(user)
    if group_id:
        queryset = queryset.filter(group_id=group_id)
    if status:
        queryset = queryset.filter(status=SettlementStatus(status))
    return queryset.order_by('-created_at', 'id')


def create_settlement(
    *,
    group_id: UUID,
    from_user: User,
    to_user_id: UUID,
    amount: int,
    method: str = PaymentMethod.UPI,
    note: str = '',
) -> SettlementRecord:
    """
    Record that ``from_user`` intends to pay ``to_user_id`` inside a group.

    The amount is not checked against the current suggested transfers;
    partial and over-payments are allowed.

    Args:
        group_id: Group the settlement belongs to
        from_user: Paying member (the caller)
        to_user_id: Receiving member
        amount: Positive integer minor units
        method: upi, cash or other
        note: Optional free text

    Returns:
        The new settlement in ``pending`` status

    Raises:
        InvalidAmountError: If amount isn't a positive integer
        InvalidSettlementPartiesError: If payer and payee are the same
        GroupNotFoundError: If the group doesn't exist
        NotMemberError: If from_user isn't a group member
        MemberNotFoundError: If to_user_id isn't a group member
        SettlementConflictError: If an open settlement already exists
            for this group, payer and payee
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(f"Settlement amount must be a positive integer, got {amount!r}")
    if from_user.id == to_user_id:
        raise InvalidSettlementPartiesError("Cannot settle with yourself")

    group = get_group_by_id(group_id=group_id)
    require_membership(group=group, user=from_user)

    membership = (
        GroupMembership.objects
        .select_related('user')
        .filter(group=group, user_id=to_user_id)
        .first()
    )
    if membership is None:
        raise MemberNotFoundError(f"User {to_user_id} is not a member of {group.name}")

    try:
        with transaction.atomic():
            settlement = SettlementRecord.objects.create(
                group=group,
                from_user=from_user,
                to_user=membership.user,
                amount=amount,
                method=method,
                note=note,
            )
            _record_event(
                settlement,
                actor=from_user,
                action=SettlementAction.CREATE,
                from_status='',
                to_status=SettlementStatus.PENDING,
            )
    except IntegrityError:
        logger.warning(
            "Settlement conflict in group %s: %s -> %s already has an open settlement",
            group.id, from_user.id, to_user_id,
        )
        raise SettlementConflictError(
            "A settlement between these members is already in progress in this group"
        )

    logger.info(
        "Settlement %s created in group %s: %s -> %s, %s",
        settlement.id, group.id, from_user.id, to_user_id, amount,
    )
    return settlement


def _already_paid(settlement, payment_reference):
    return (
        settlement.status == SettlementStatus.PAID_PENDING
        and payment_reference in (None, settlement.payment_reference)
    )


def mark_settlement_paid(
    *,
    settlement_id: UUID,
    user: User,
    payment_reference: Optional[str] = None,
) -> SettlementRecord:
    """
    Payer reports the money as sent.

    Allowed from ``pending`` or ``paid_pending``. Repeating the call only
    updates the payment reference; passing ``None`` or the stored
    reference again changes nothing and records no event.

    Raises:
        SettlementNotFoundError: If the settlement isn't visible to user
        SettlementPermissionError: If user is not the payer
        InvalidSettlementTransitionError: If the settlement is confirmed
            or cancelled
    """
    settlement = get_settlement(settlement_id=settlement_id, user=user)
    action = SettlementAction.MARK_PAID

    if user.id != settlement.from_user_id:
        raise _deny(settlement, action, user, "Only the payer can mark a settlement as paid")
    if settlement.is_terminal:
        raise _reject_transition(settlement, action, user)

    now = timezone.now()
    changes = {
        'status': SettlementStatus.PAID_PENDING,
        'paid_at': Coalesce('paid_at', Value(now, output_field=models.DateTimeField())),
        'updated_at': now,
    }
    if payment_reference is not None:
        changes['payment_reference'] = payment_reference

    with transaction.atomic():
        # Statuses only move forward, so this retries at most once.
        while True:
            if _already_paid(settlement, payment_reference):
                return settlement
            previous_status = settlement.status
            updated = (
                SettlementRecord.objects
                .filter(id=settlement.id, status=previous_status)
                .update(**changes)
            )
            settlement.refresh_from_db()
            if updated:
                break
            if settlement.is_terminal:
                raise _reject_transition(settlement, action, user)

        _record_event(
            settlement,
            actor=user,
            action=action,
            from_status=previous_status,
            to_status=settlement.status,
            payment_reference=settlement.payment_reference,
        )


    logger.info(
        "Settlement %s marked paid by %s (reference %r)",
        settlement.id, user.id, settlement.payment_reference,
    )
    return settlement


def confirm_settlement(*, settlement_id: UUID, user: User) -> SettlementRecord:
    """
    Receiver confirms the money arrived. Irreversible.

    Confirming an already confirmed settlement succeeds without changes.

    Raises:
        SettlementNotFoundError: If the settlement isn't visible to user
        SettlementPermissionError: If user is not the receiver
        InvalidSettlementTransitionError: If the settlement is pending
            or cancelled
    """
    settlement = get_settlement(settlement_id=settlement_id, user=user)
    action = SettlementAction.CONFIRM

    if user.id != settlement.to_user_id:
        raise _deny(settlement, action, user, "Only the receiver can confirm a settlement")
    if settlement.status == SettlementStatus.CONFIRMED:
        return settlement
    if settlement.status != SettlementStatus.PAID_PENDING:
        raise _reject_transition(settlement, action, user)

    now = timezone.now()
    with transaction.atomic():
        updated = (
            SettlementRecord.objects
            .filter(id=settlement.id, status=SettlementStatus.PAID_PENDING)
            .update(status=SettlementStatus.CONFIRMED, confirmed_at=now, updated_at=now)
        )
        settlement.refresh_from_db()
        if not updated:
            # Lost a race: a concurrent confirm is fine, anything else is not.
            if settlement.status == SettlementStatus.CONFIRMED:
                return settlement
            raise _reject_transition(settlement, action, user)

        _record_event(
            settlement,
            actor=user,
            action=action,
            from_status=SettlementStatus.PAID_PENDING,
            to_status=SettlementStatus.CONFIRMED,
            payment_reference=settlement.payment_reference,
        )

    logger.info("Settlement %s confirmed by %s", settlement.id, user.id)
    return settlement


def cancel_settlement(*, settlement_id: UUID, user: User) -> SettlementRecord:
    """
    Either party withdraws an open settlement.

    Cancelling an already cancelled settlement succeeds without changes.

    Raises:
        SettlementNotFoundError: If the settlement isn't visible to user
        SettlementPermissionError: If user is neither payer nor receiver
        InvalidSettlementTransitionError: If the settlement is confirmed
    """
    settlement = get_settlement(settlement_id=settlement_id, user=user)
    action = SettlementAction.CANCEL

    if not settlement.is_party(user):
        raise _deny(settlement, action, user, "Only the payer or receiver can cancel a settlement")
    if settlement.status == SettlementStatus.CANCELLED:
        return settlement
    if settlement.is_terminal:
        raise _reject_transition(settlement, action, user)

    now = timezone.now()
    with transaction.atomic():
        while True:
            previous_status = settlement.status
            updated = (
                SettlementRecord.objects
                .filter(id=settlement.id, status=previous_status)
                .update(
                    status=SettlementStatus.CANCELLED,
                    cancelled_at=now,
                    cancelled_by=user,
                    updated_at=now,
                )
            )
            settlement.refresh_from_db()
            if updated:
                break
            if settlement.status == SettlementStatus.CANCELLED:
                return settlement
            if settlement.is_terminal:
                raise _reject_transition(settlement, action, user)

        _record_event(
            settlement,
            actor=user,
            action=action,
            from_status=previous_status,
            to_status=SettlementStatus.CANCELLED,
        )

    logger.info("Settlement %s cancelled by %s", settlement.id, user.id)
    return settlement
