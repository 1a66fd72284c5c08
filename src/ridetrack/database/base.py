"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Iterable

from ridetrack.domain.entities import (
    Expense,
    LocalDataset,
    Preferences,
    Shift,
    UberTransaction,
)


class Database(ABC):
    """Abstract database interface for ridetrack."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Dataset operations
    @abstractmethod
    def load_dataset(self) -> LocalDataset:
        """Load all records and preferences as a LocalDataset."""
        pass

    @abstractmethod
    def save_dataset(self, dataset: LocalDataset) -> None:
        """Replace all stored records and preferences in one transaction."""
        pass

    # Preferences operations
    @abstractmethod
    def get_preferences(self) -> Preferences:
        """Get stored preferences, or defaults if none were saved."""
        pass

    @abstractmethod
    def save_preferences(self, preferences: Preferences) -> None:
        """Save preferences."""
        pass

    # Shift operations
    @abstractmethod
    def add_shift(self, shift: Shift) -> None:
        """Insert a shift."""
        pass

    @abstractmethod
    def list_shifts(self) -> list[Shift]:
        """List shifts in insertion order."""
        pass

    # Expense operations
    @abstractmethod
    def add_expense(self, expense: Expense) -> None:
        """Insert an expense."""
        pass

    @abstractmethod
    def list_expenses(self) -> list[Expense]:
        """List expenses in insertion order."""
        pass

    # Uber transaction operations
    @abstractmethod
    def add_transactions(self, transactions: Iterable[UberTransaction]) -> int:
        """Insert transactions. Returns number inserted."""
        pass

    @abstractmethod
    def list_transactions(self) -> list[UberTransaction]:
        """List transactions in insertion order."""
        pass
