"""
Balances, suggested transfers and the settlement lifecycle.

The ``engine`` package holds the storage-independent algorithms; the
``services`` package loads ORM records into it and owns every write.
"""
