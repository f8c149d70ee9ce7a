# nftmarket/fees.py
"""Protocol fee accumulator."""

from typing import Any, Dict


class FeeAccount:
    """
    The protocol's cut of completed sales.

    The balance only grows, except when drained by a withdrawal.
    Who may drain it is decided by the Marketplace.
    """

    def __init__(self, balance: int = 0):
        if balance < 0:
            raise ValueError(f"Fee balance cannot be negative, got {balance}")
        self._balance = balance

    @property
    def balance(self) -> int:
        return self._balance

    def credit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit a negative fee, got {amount}")
        self._balance += amount

    def drain(self) -> int:
        """Zero the balance and return what it held."""
        amount = self._balance
        self._balance = 0
        return amount

    def snapshot(self) -> int:
        return self._balance

    def restore(self, snapshot: int) -> None:
        self._balance = snapshot

    def to_dict(self) -> Dict[str, Any]:
        return {"balance": self._balance}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeeAccount":
        return cls(balance=data.get("balance", 0))
