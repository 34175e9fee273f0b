from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Protocol

from trade_sim.exceptions.core import ConsistencyViolation


def normalize_symbol(symbol: str) -> str:
    return str(symbol).strip().upper()


@dataclass
class Instrument:
    """
    One tradable symbol.

    `price` moves on every tick; `open_price` is the session baseline and
    only changes on Market.new_session().
    """
    symbol: str
    name: str
    price: float
    open_price: float = field(default=0.0)

    def __post_init__(self):
        self.symbol = normalize_symbol(self.symbol)
        self.price = float(self.price)
        if not math.isfinite(self.price) or self.price <= 0:
            raise ValueError(f"{self.symbol}: price must be a positive finite number, got {self.price}")
        # a fresh instrument opens at its initial price
        self.open_price = float(self.open_price) if self.open_price else self.price
        if not math.isfinite(self.open_price) or self.open_price <= 0:
            raise ValueError(f"{self.symbol}: open price must be a positive finite number, got {self.open_price}")

    def new_session(self) -> None:
        self.open_price = self.price

    def pct_change_from_open(self) -> float:
        if self.open_price <= 0:
            raise ConsistencyViolation(f"{self.symbol}: open price is not positive ({self.open_price})")
        return (self.price - self.open_price) / self.open_price * 100.0

    def to_dict(self) -> Dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "open_price": self.open_price,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "Instrument":
        return cls(
            symbol=d["symbol"],
            name=d["name"],
            price=d["price"],
            open_price=d.get("open_price", 0.0),
        )


class PriceModelProto(Protocol):
    """
    Stochastic price step.
    Owns its random stream; must never return a non-positive price.
    """
    name: str

    def next_price(self, price: float) -> float:
        ...

    def spec(self) -> Dict:
        """{type, params} needed to rebuild an equivalent model."""
        ...
