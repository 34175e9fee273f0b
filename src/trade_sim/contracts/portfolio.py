# contracts/portfolio.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Protocol

from trade_sim.contracts.execution.order import OrderSide
from trade_sim.contracts.market import normalize_symbol
from trade_sim.utils.clock import ensure_epoch_ms, to_datetime

"""
┌──────────────────────────┐
│          Market          │  current prices (read-only to Account)
└──────────────┬───────────┘
               │  get_price()
               ▼
┌──────────────────────────┐
│         Account          │  buy() / sell()
└──────────────┬───────────┘
    appends    │ mutates
               ▼
┌────────────────┬─────────────────┬──────────────────┐
│    Holding     │   Transaction   │ PerformancePoint │
└────────────────┴─────────────────┴──────────────────┘
"""


def _finite(value, label: str) -> float:
    out = float(value)
    if not math.isfinite(out):
        raise ValueError(f"{label} must be finite, got {value!r}")
    return out


@dataclass
class Holding:
    symbol: str
    shares: int = 0
    avg_cost: float = 0.0

    def market_value(self, price: float) -> float:
        return self.shares * price

    def to_dict(self) -> Dict:
        return {"symbol": self.symbol, "shares": self.shares, "avg_cost": self.avg_cost}

    @classmethod
    def from_dict(cls, d: Dict) -> "Holding":
        symbol = normalize_symbol(d["symbol"])
        shares = int(d["shares"])
        avg_cost = _finite(d["avg_cost"], f"holding {symbol} avg_cost")
        if shares < 0 or avg_cost < 0:
            raise ValueError(f"holding {symbol}: negative shares or cost basis")
        if shares == 0 and avg_cost != 0:
            raise ValueError(f"holding {symbol}: closed position carries cost basis {avg_cost}")
        return cls(symbol=symbol, shares=shares, avg_cost=avg_cost)


@dataclass(frozen=True)
class Transaction:
    timestamp: int            # epoch ms
    side: OrderSide
    symbol: str
    shares: int
    price: float
    cash_after: float

    @property
    def notional(self) -> float:
        return self.shares * self.price

    def describe(self) -> str:
        when = to_datetime(self.timestamp).astimezone().strftime("%Y-%m-%d %H:%M")
        return (
            f"{when} | {self.side.value:<4} | {self.symbol:<4} x {self.shares} "
            f"@ {self.price:.2f} | Cash: {self.cash_after:.2f}"
        )

    def to_dict(self) -> Dict:
        return {
            "timestamp": self.timestamp,
            "side": self.side.value,
            "symbol": self.symbol,
            "shares": self.shares,
            "price": self.price,
            "cash_after": self.cash_after,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "Transaction":
        return cls(
            timestamp=ensure_epoch_ms(d["timestamp"]),
            side=OrderSide(d["side"]),
            symbol=normalize_symbol(d["symbol"]),
            shares=int(d["shares"]),
            price=_finite(d["price"], "transaction price"),
            cash_after=_finite(d["cash_after"], "transaction cash_after"),
        )


@dataclass(frozen=True)
class PerformancePoint:
    timestamp: int            # epoch ms
    total_value: float

    def to_dict(self) -> Dict:
        return {"timestamp": self.timestamp, "total_value": self.total_value}

    @classmethod
    def from_dict(cls, d: Dict) -> "PerformancePoint":
        return cls(timestamp=ensure_epoch_ms(d["timestamp"]), total_value=_finite(d["total_value"], "performance total_value"))


class AccountProto(Protocol):
    """
    Core accounting interface.
    Executes orders against market prices.
    Updates cash, holdings and both logs.
    """
    cash: float

    def buy(self, symbol: str, shares: int, market) -> Transaction:
        ...

    def sell(self, symbol: str, shares: int, market) -> Transaction:
        ...

    def total_value(self, market) -> float:
        ...

    def record_performance(self, market) -> PerformancePoint:
        ...
