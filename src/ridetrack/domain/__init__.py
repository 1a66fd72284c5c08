"""Domain layer for ridetrack application.

Submodules are imported directly (``ridetrack.domain.reconciliation``,
``ridetrack.domain.backup_restore``, ...); the storage and database layers
depend on ``ridetrack.domain.entities``, so this package imports nothing
eagerly.
"""
