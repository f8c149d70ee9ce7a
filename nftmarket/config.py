# nftmarket/config.py
"""
Marketplace configuration.

Settings can be given directly or loaded from a YAML file:

    fee_percent: 5
    domain: market.example.com
    state_dir: /var/lib/nftmarket
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_FEE_PERCENT = 5
DEFAULT_DOMAIN = "nftmarket.local"


@dataclass
class MarketConfig:
    """
    Ledger settings.

    Attributes:
        fee_percent: Protocol cut of each sale, whole percent (0-100)
        domain: Domain used to build identity ids
        state_dir: Directory holding persisted ledger state
    """
    fee_percent: int = DEFAULT_FEE_PERCENT
    domain: str = DEFAULT_DOMAIN
    state_dir: Optional[Path] = None

    def __post_init__(self):
        if isinstance(self.fee_percent, bool) or not isinstance(self.fee_percent, int):
            raise ValueError(f"fee_percent must be an integer, got {self.fee_percent!r}")
        if not 0 <= self.fee_percent <= 100:
            raise ValueError(f"fee_percent must be between 0 and 100, got {self.fee_percent}")
        if not self.domain:
            raise ValueError("domain must not be empty")
        if self.state_dir is not None:
            self.state_dir = Path(self.state_dir)

    def split(self, price: int) -> tuple[int, int]:
        """
        Split a sale price into (seller_share, fee).

        The seller share is rounded down, so the fee absorbs any
        integer-division remainder.
        """
        seller_share = price * (100 - self.fee_percent) // 100
        return seller_share, price - seller_share

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "fee_percent": self.fee_percent,
            "domain": self.domain,
        }
        if self.state_dir:
            data["state_dir"] = str(self.state_dir)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketConfig":
        return cls(
            fee_percent=data.get("fee_percent", DEFAULT_FEE_PERCENT),
            domain=data.get("domain", DEFAULT_DOMAIN),
            state_dir=data.get("state_dir"),
        )

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "MarketConfig":
        """Parse configuration from a YAML string."""
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a YAML mapping")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "MarketConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            return cls.from_yaml(f.read())
