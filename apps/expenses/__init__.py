"""
Expenses App - Shared expense records

Stores who paid for what and how each expense is split between group
members. Amounts are integer minor units; the split service guarantees
that split items always add up to the expense total.

Architecture:
- Models: ExpenseRecord, SplitItem
- Services: ExpenseSplitService
- Views: create/list/retrieve API (records are immutable once created)
"""
