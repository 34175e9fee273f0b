from __future__ import annotations

import pandas as pd
import pytest

from trade_sim.contracts.market import Instrument
from trade_sim.contracts.portfolio import Holding, PerformancePoint
from trade_sim.portfolio.report import (
    holding_pnl_pct,
    holding_view,
    instrument_view,
    performance_changes,
    performance_frame,
    performance_views,
    realized_pnl,
)


def _points(*values):
    return [PerformancePoint(timestamp=1_700_000_000_000 + i * 1_000, total_value=v) for i, v in enumerate(values)]


def test_holding_pnl_pct():
    assert holding_pnl_pct(Holding("A", 10, 200.0), 210.0) == pytest.approx(5.0)
    assert holding_pnl_pct(Holding("A", 10, 200.0), 180.0) == pytest.approx(-10.0)


def test_holding_pnl_pct_closed_lot_is_zero():
    assert holding_pnl_pct(Holding("A", 0, 0.0), 123.0) == 0.0


def test_realized_pnl():
    assert realized_pnl(avg_cost=206.0, price=210.0, shares_sold=15) == pytest.approx(60.0)


def test_performance_changes_are_cumulative_against_first_point():
    changes = performance_changes(_points(10_000.0, 10_500.0, 9_000.0, 11_000.0))
    assert changes == pytest.approx([0.0, 5.0, -10.0, 10.0])


def test_performance_changes_edge_cases():
    assert performance_changes([]) == []
    assert performance_changes(_points(0.0, 5.0)) == [0.0, 0.0]


def test_performance_views_trimmed_keep_full_baseline():
    pts = _points(100.0, 110.0, 120.0, 90.0)
    views = performance_views(pts, last=2)

    assert [v.total_value for v in views] == [120.0, 90.0]
    assert [v.pct_change for v in views] == pytest.approx([20.0, -10.0])
    assert performance_views(pts, last=0) == []
    assert len(performance_views(pts)) == 4
    assert len(performance_views(pts, last=50)) == 4


def test_instrument_and_holding_views():
    inst = Instrument(symbol="aapl", name="Apple Inc.", price=200.0)
    inst.price = 210.0
    iv = instrument_view(inst)
    assert (iv.symbol, iv.open_price, iv.price) == ("AAPL", 200.0, 210.0)
    assert iv.pct_change == pytest.approx(5.0)

    hv = holding_view(Holding("AAPL", 10, 200.0), 210.0)
    assert hv.market_value == pytest.approx(2_100.0)
    assert hv.pnl_pct == pytest.approx(5.0)


def test_performance_frame():
    df = performance_frame(_points(100.0, 105.0))

    assert list(df.columns) == ["total_value", "pct_change"]
    assert df.index.name == "ts"
    assert str(df.index.tz) == "UTC"
    assert df.index[0] == pd.Timestamp("2023-11-14 22:13:20", tz="UTC")
    assert df["pct_change"].tolist() == pytest.approx([0.0, 5.0])


def test_performance_frame_empty():
    df = performance_frame([])
    assert df.empty
