from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd

from trade_sim.contracts.market import Instrument
from trade_sim.contracts.portfolio import Holding, PerformancePoint


@dataclass(frozen=True)
class InstrumentView:
    symbol: str
    name: str
    price: float
    open_price: float
    pct_change: float


@dataclass(frozen=True)
class HoldingView:
    symbol: str
    shares: int
    avg_cost: float
    price: float
    market_value: float
    pnl_pct: float


@dataclass(frozen=True)
class PerformanceView:
    timestamp: int
    total_value: float
    pct_change: float


def holding_pnl_pct(holding: Holding, price: float) -> float:
    if holding.avg_cost > 0:
        return (price - holding.avg_cost) / holding.avg_cost * 100.0
    return 0.0


def realized_pnl(avg_cost: float, price: float, shares_sold: int) -> float:
    return (price - avg_cost) * shares_sold


def performance_changes(points: Sequence[PerformancePoint]) -> List[float]:
    """Cumulative % change of every point against the first one."""
    if not points:
        return []
    base = points[0].total_value
    if base <= 0:
        return [0.0] * len(points)
    return [(p.total_value - base) / base * 100.0 for p in points]


def instrument_view(inst: Instrument) -> InstrumentView:
    return InstrumentView(
        symbol=inst.symbol,
        name=inst.name,
        price=inst.price,
        open_price=inst.open_price,
        pct_change=inst.pct_change_from_open(),
    )


def holding_view(holding: Holding, price: float) -> HoldingView:
    return HoldingView(
        symbol=holding.symbol,
        shares=holding.shares,
        avg_cost=holding.avg_cost,
        price=price,
        market_value=holding.market_value(price),
        pnl_pct=holding_pnl_pct(holding, price),
    )


def performance_views(points: Sequence[PerformancePoint], last: int | None = None) -> List[PerformanceView]:
    # pct is always measured against the full log's first point, even when trimmed
    changes = performance_changes(points)
    views = [
        PerformanceView(timestamp=p.timestamp, total_value=p.total_value, pct_change=c)
        for p, c in zip(points, changes)
    ]
    if last is None:
        return views
    return views[-last:] if last > 0 else []


def performance_frame(points: Sequence[PerformancePoint]) -> pd.DataFrame:
    """
    Performance log as a time-indexed frame.

    Columns:
        total_value : account value at the point
        pct_change  : cumulative % change vs the first point
    """
    df = pd.DataFrame(
        {
            "total_value": [p.total_value for p in points],
            "pct_change": performance_changes(points),
        },
        index=pd.to_datetime([p.timestamp for p in points], unit="ms", utc=True),
    )
    df.index.name = "ts"
    return df
