# nftmarket/funds.py
"""
Outbound fund transfers.

The gateway stands in for the payment rail the ledger pays out through.
Paying an identity credits its balance and then hands control to that
identity's receiver callback, if one is registered. A receiver may call
straight back into the Marketplace, so callers must finish their own
bookkeeping before calling transfer(). If a receiver raises, the
transfer fails and so does the operation that made it.
"""

import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Receiver = Callable[[int], None]


class FundsGateway:
    """
    Balances paid out by the ledger, plus receiver callbacks.

    Balances are persisted by the Marketplace as part of its ledger
    state; receivers are runtime-only.
    """

    def __init__(self, balances: Dict[str, int] = None):
        self._balances: Dict[str, int] = dict(balances or {})
        self._receivers: Dict[str, Receiver] = {}

    def to_dict(self) -> Dict[str, Any]:
        return {"balances": dict(self._balances)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FundsGateway":
        return cls(balances=data.get("balances", {}))

    def register_receiver(self, identity: str, receiver: Receiver) -> None:
        """Call ``receiver(amount)`` whenever ``identity`` is paid."""
        self._receivers[identity] = receiver

    def unregister_receiver(self, identity: str) -> None:
        self._receivers.pop(identity, None)

    def transfer(self, to: str, amount: int) -> None:
        """
        Pay ``amount`` to ``to``.

        Args:
            to: Recipient identity
            amount: Positive amount
        """
        if amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {amount}")

        self._balances[to] = self._balances.get(to, 0) + amount
        logger.debug(f"Paid {amount} to {to}")

        receiver: Optional[Receiver] = self._receivers.get(to)
        if receiver is not None:
            receiver(amount)

    def balance_of(self, identity: str) -> int:
        return self._balances.get(identity, 0)

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, snapshot: Dict[str, int]) -> None:
        self._balances = dict(snapshot)
