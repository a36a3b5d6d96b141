"""
Expense Services Module
=======================

This module provides business logic for recording shared expenses with
paisa-precise splitting.

Classes:
    ExpenseSplitService: Creates expenses and their split items.

Example:
    Recording an expense split equally between all group members::

        from apps.expenses.services import ExpenseSplitService

        expense, splits = ExpenseSplitService.create_group_expense(
            group_id=group.id,
            paid_by_user=current_user,
            amount=90000,  # 900.00 INR in paise
            description='Dinner',
        )

        for split in splits:
            print(f"{split.user.email}: {split.owed_amount}")
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction

from apps.accounts.models import User
from apps.groups.models import GroupMembership
from apps.groups.services import get_group_by_id, NotMemberError
from apps.settlements.engine.money import split_evenly, split_by_weights
from apps.settlements.exceptions import InvalidAmountError
from .exceptions import (
    NoParticipantsError,
    InvalidSplitError,
    UnknownParticipantError,
    InvalidExpenseAmountError,
    ExpenseNotFoundError,
)
from .models import ExpenseRecord, SplitItem, SplitType


logger = logging.getLogger(__name__)

# 100% expressed in basis points
FULL_PERCENTAGE_BP = 10000


class ExpenseSplitService:
    """
    Service for creating group expenses with paisa-precise splitting.

    All amounts are integers in minor units. Shares are computed with
    integer arithmetic and any remainder is handed out one unit at a
    time from the first participant (membership order), so split items
    always sum exactly to the expense amount.

    Methods:
        create_group_expense: Create an expense and its split items.
        calculate_splits: Compute (user, owed_amount) pairs for a split type.
        get_expense: Fetch an expense visible to a user.

    Example:
        Exact amounts::

            expense, splits = ExpenseSplitService.create_group_expense(
                group_id=group.id,
                paid_by_user=buyer,
                amount=50000,
                split_type=SplitType.EXACT,
                shares={alice.id: 30000, bob.id: 20000},
            )
    """

    @staticmethod
    def create_group_expense(
        group_id,
        paid_by_user,
        amount,
        description='',
        split_type=SplitType.EQUAL,
        split_members=None,
        shares=None,
    ):
        """
        Create an expense and split it between group members.

        Args:
            group_id (UUID): Group the expense belongs to.
            paid_by_user (User): Member who paid. Must belong to the group.
            amount (int): Total in minor units, positive.
            description (str, optional): Free-text label.
            split_type (str, optional): ``equal``, ``exact`` or ``percentage``.
            split_members (list[UUID], optional): For equal splits, the
                members to split between. Defaults to all group members.
            shares (dict[UUID, int | Decimal], optional): For exact splits,
                owed minor units per member; for percentage splits, the
                percentage per member (up to two decimal places).

        Returns:
            tuple: (ExpenseRecord, list[SplitItem])

        Raises:
            GroupNotFoundError: If the group doesn't exist.
            NotMemberError: If the payer isn't a group member.
            UnknownParticipantError: If split members or shares name
                someone outside the group.
            InvalidExpenseAmountError: If amount isn't a positive integer.
            NoParticipantsError: If nobody would share the expense.
            InvalidSplitError: If requested shares don't reconcile.

        Note:
            Wrapped in a database transaction; a failed split leaves no
            partial expense behind.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidExpenseAmountError(f"Expense amount must be a positive integer, got {amount!r}")

        with transaction.atomic():
            group = get_group_by_id(group_id=group_id)

            memberships = list(
                GroupMembership.objects
                .filter(group=group)
                .select_related('user')
                .order_by('joined_at', 'id')
            )
            members = [m.user for m in memberships]
            member_ids = {user.id for user in members}

            if paid_by_user.id not in member_ids:
                raise NotMemberError(f"{paid_by_user.email} is not a member of {group.name}")

            participants = ExpenseSplitService._select_participants(
                members, member_ids, split_type, split_members, shares
            )
            split_data = ExpenseSplitService.calculate_splits(
                amount, participants, split_type, shares
            )

            expense = ExpenseRecord.objects.create(
                group=group,
                paid_by=paid_by_user,
                amount=amount,
                description=description,
                split_type=split_type,
            )
            splits = SplitItem.objects.bulk_create([
                SplitItem(expense=expense, user=user, owed_amount=owed, position=position)
                for position, (user, owed) in enumerate(split_data)
            ])

        logger.info(
            "Expense %s recorded in group %s: %s split %s ways (%s)",
            expense.id, group.id, amount, len(splits), split_type,
        )
        return expense, splits

    @staticmethod
    def _select_participants(members, member_ids, split_type, split_members, shares):
        if split_type == SplitType.EQUAL:
            if split_members:
                wanted = set(split_members)
                unknown = wanted - member_ids
                if unknown:
                    raise UnknownParticipantError(f"Not group members: {sorted(str(u) for u in unknown)}")
                return [user for user in members if user.id in wanted]
            return members

        if split_type not in (SplitType.EXACT, SplitType.PERCENTAGE):
            raise InvalidSplitError(f"Unknown split type {split_type!r}")
        if not shares:
            raise NoParticipantsError(f"A {split_type} split needs shares per member")

        unknown = set(shares) - member_ids
        if unknown:
            raise UnknownParticipantError(f"Not group members: {sorted(str(u) for u in unknown)}")
        return [user for user in members if user.id in shares]

    @staticmethod
    def calculate_splits(amount, participants, split_type=SplitType.EQUAL, shares=None):
        """
        Split an amount between participants with paisa precision.

        Algorithm (equal split):
            1. Base share: ``amount // N``
            2. Remainder: ``amount % N``
            3. First 'remainder' participants get ``base + 1``

        Percentages are converted to basis points and split proportionally
        with the same remainder rule. Exact shares are taken as given and
        must add up to the amount.

        Args:
            amount (int): Total in minor units.
            participants (list[User]): Users in iteration order.
            split_type (str): ``equal``, ``exact`` or ``percentage``.
            shares (dict, optional): Per-user values for exact/percentage.

        Returns:
            list[tuple]: (User, int) pairs.

        Raises:
            NoParticipantsError: If participants list is empty.
            InvalidSplitError: If shares don't reconcile with the amount.

        Example:
            10000 paise split among 3 people::

                >>> ExpenseSplitService.calculate_splits(10000, [u1, u2, u3])
                [(u1, 3334), (u2, 3333), (u3, 3333)]
        """
        if not participants:
            raise NoParticipantsError("At least one participant required")

        if split_type == SplitType.EQUAL:
            owed = split_evenly(amount, len(participants))
        elif split_type == SplitType.EXACT:
            owed = ExpenseSplitService._exact_shares(participants, shares)
        elif split_type == SplitType.PERCENTAGE:
            weights = ExpenseSplitService._percentage_weights(participants, shares)
            try:
                owed = split_by_weights(amount, weights)
            except InvalidAmountError as exc:
                raise InvalidSplitError(str(exc)) from exc
        else:
            raise InvalidSplitError(f"Unknown split type {split_type!r}")

        # Verification (safety check)
        if sum(owed) != amount:
            raise InvalidSplitError(
                f"Split calculation error: {sum(owed)} != {amount}"
            )

        return list(zip(participants, owed))

    @staticmethod
    def _exact_shares(participants, shares):
        owed = []
        for user in participants:
            value = shares[user.id]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidSplitError(f"Share for {user.email} must be a non-negative integer")
            owed.append(value)
        return owed

    @staticmethod
    def _percentage_weights(participants, shares):
        weights = []
        for user in participants:
            try:
                basis_points = Decimal(str(shares[user.id])) * 100
            except InvalidOperation:
                raise InvalidSplitError(f"Invalid percentage for {user.email}")
            if basis_points < 0 or basis_points != basis_points.to_integral_value():
                raise InvalidSplitError(
                    f"Percentage for {user.email} must be non-negative with at most 2 decimals"
                )
            weights.append(int(basis_points))

        if sum(weights) != FULL_PERCENTAGE_BP:
            raise InvalidSplitError("Percentages must add up to 100")
        return weights

    @staticmethod
    def get_expense(expense_id, user: User):
        """
        Fetch an expense with its splits, if the user is in its group.

        Raises:
            ExpenseNotFoundError: If missing or in a group the user isn't in.
        """
        try:
            return (
                ExpenseRecord.objects
                .select_related('group', 'paid_by')
                .prefetch_related('splits__user')
                .get(id=expense_id, group__memberships__user=user)
            )
        except ExpenseRecord.DoesNotExist:
            raise ExpenseNotFoundError(f"Expense {expense_id} not found")
