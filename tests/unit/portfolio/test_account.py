from __future__ import annotations

import pytest

from helpers.factories import FakeClock, make_market, set_price
from trade_sim.contracts.execution.order import Order, OrderSide
from trade_sim.contracts.portfolio import Holding
from trade_sim.exceptions.core import (
    ConsistencyViolation,
    InsufficientCash,
    InsufficientShares,
    InvalidQuantity,
    UnknownSymbol,
)
from trade_sim.portfolio.account import EPS, Account


def _snapshot(acct: Account):
    return (
        acct.cash,
        {s: (h.shares, h.avg_cost) for s, h in acct.holdings.items()},
        list(acct.transactions),
        list(acct.performance),
    )


# ---------------------------------------------------------------------
# Reference scenario
# ---------------------------------------------------------------------

def test_buy_buy_sell_scenario(account, market):
    account.buy("AAPL", 10, market)
    assert account.cash == pytest.approx(8_000.00)
    h = account.holdings["AAPL"]
    assert h.shares == 10
    assert h.avg_cost == pytest.approx(200.00)

    set_price(market, "AAPL", 220.0)
    account.buy("AAPL", 5, market)
    assert h.shares == 15
    assert h.avg_cost == pytest.approx((10 * 200 + 5 * 220) / 15)
    assert round(h.avg_cost, 2) == 206.67
    assert account.cash == pytest.approx(6_900.00)

    set_price(market, "AAPL", 210.0)
    tx = account.sell("AAPL", 15, market)
    assert h.shares == 0
    assert h.avg_cost == 0.0
    assert tx.price == 210.0
    assert tx.notional == pytest.approx(3_150.00)
    assert account.cash == pytest.approx(10_050.00)


def test_average_cost_formula(account, market):
    account.buy("MSFT", 3, market)
    set_price(market, "MSFT", 400.0)
    account.buy("MSFT", 7, market)
    assert account.holdings["MSFT"].avg_cost == pytest.approx((3 * 420.0 + 7 * 400.0) / 10)


def test_partial_sell_keeps_cost_basis(account, market):
    account.buy("TSLA", 10, market)
    set_price(market, "TSLA", 300.0)
    account.sell("TSLA", 4, market)
    h = account.holdings["TSLA"]
    assert h.shares == 6
    assert h.avg_cost == pytest.approx(230.0)


def test_closed_lot_then_rebuy_sets_fresh_basis(account, market):
    account.buy("AAPL", 2, market)
    account.sell("AAPL", 2, market)
    assert account.holdings["AAPL"].avg_cost == 0.0

    set_price(market, "AAPL", 150.0)
    account.buy("AAPL", 4, market)
    assert account.holdings["AAPL"].shares == 4
    assert account.holdings["AAPL"].avg_cost == pytest.approx(150.0)


def test_closed_holding_entry_is_kept(account, market):
    account.buy("AAPL", 1, market)
    account.sell("AAPL", 1, market)
    assert "AAPL" in account.holdings
    assert account.position("aapl") == 0


# ---------------------------------------------------------------------
# Conservation
# ---------------------------------------------------------------------

def test_cash_moves_by_exact_notional(account, market):
    before = account.cash
    account.buy("MSFT", 3, market)
    assert account.cash == pytest.approx(before - 3 * 420.0, abs=EPS)

    mid = account.cash
    account.sell("MSFT", 2, market)
    assert account.cash == pytest.approx(mid + 2 * 420.0, abs=EPS)


def test_round_trip_at_same_price_conserves_total_value(account, market):
    start = account.total_value(market)
    account.buy("TSLA", 7, market)
    assert account.total_value(market) == pytest.approx(start, abs=EPS)
    account.sell("TSLA", 7, market)
    assert account.total_value(market) == pytest.approx(start, abs=EPS)
    assert account.cash == pytest.approx(start, abs=EPS)


def test_share_count_is_net_of_executed_orders(account, market):
    flow = [("BUY", 5), ("BUY", 3), ("SELL", 4), ("BUY", 1), ("SELL", 5)]
    net = 0
    for side, qty in flow:
        if side == "BUY":
            account.buy("AAPL", qty, market)
            net += qty
        else:
            account.sell("AAPL", qty, market)
            net -= qty
        assert account.holdings["AAPL"].shares == net >= 0
    assert net == 0
    assert account.holdings["AAPL"].avg_cost == 0.0


# ---------------------------------------------------------------------
# Rejections leave no trace
# ---------------------------------------------------------------------

def test_insufficient_cash_rejected_without_mutation(account, market):
    before = _snapshot(account)
    with pytest.raises(InsufficientCash) as exc:
        account.buy("MSFT", 24, market)   # 10,080 > 10,000
    assert exc.value.required == pytest.approx(10_080.0)
    assert _snapshot(account) == before
    assert "MSFT" not in account.holdings


def test_buy_with_exact_cash_is_allowed(clock, market):
    acct = Account(cash=2_000.0, clock=clock)
    acct.buy("AAPL", 10, market)
    assert acct.cash == 0.0


def test_buy_within_epsilon_is_allowed_and_cash_never_negative(clock, market):
    acct = Account(cash=2_000.0 - EPS / 2, clock=clock)
    acct.buy("AAPL", 10, market)
    assert acct.cash >= 0.0
    assert acct.cash == pytest.approx(0.0, abs=EPS)


@pytest.mark.parametrize("qty", [0, -3, True, 1.5, "2"])
def test_invalid_quantity(account, market, qty):
    before = _snapshot(account)
    with pytest.raises(InvalidQuantity):
        account.buy("AAPL", qty, market)
    with pytest.raises(InvalidQuantity):
        account.sell("AAPL", qty, market)
    assert _snapshot(account) == before


def test_unknown_symbol(account, market):
    with pytest.raises(UnknownSymbol):
        account.buy("NFLX", 1, market)
    with pytest.raises(UnknownSymbol):
        account.sell("NFLX", 1, market)
    assert account.transactions == []


def test_sell_never_held_symbol_is_insufficient_shares(account, market):
    with pytest.raises(InsufficientShares) as exc:
        account.sell("AAPL", 5, market)
    assert exc.value.held == 0
    assert exc.value.requested == 5


def test_oversell_rejected_without_mutation(account, market):
    account.buy("AAPL", 3, market)
    before = _snapshot(account)
    with pytest.raises(InsufficientShares):
        account.sell("AAPL", 4, market)
    assert _snapshot(account) == before


def test_failing_clock_leaves_account_untouched(market):
    def broken_clock():
        raise RuntimeError("clock down")

    acct = Account(cash=1_000.0, clock=broken_clock)
    with pytest.raises(RuntimeError):
        acct.buy("AAPL", 1, market)
    assert acct.cash == 1_000.0
    assert acct.holdings == {}


# ---------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------

def test_transactions_record_post_trade_cash(account, market, clock):
    t1 = account.buy("aapl", 10, market)
    t2 = account.sell("AAPL", 4, market)

    assert [t.side for t in account.transactions] == [OrderSide.BUY, OrderSide.SELL]
    assert t1.symbol == "AAPL"
    assert t1.cash_after == pytest.approx(8_000.0)
    assert t2.cash_after == pytest.approx(8_800.0)
    assert t2.shares == 4
    assert t1.timestamp < t2.timestamp


def test_describe_formats_transaction(account, market):
    tx = account.buy("AAPL", 10, market)
    line = tx.describe()
    assert "BUY" in line
    assert "AAPL x 10 @ 200.00" in line
    assert line.endswith("Cash: 8000.00")


def test_execute_dispatches_on_side(account, market):
    account.execute(Order(side=OrderSide.BUY, symbol="MSFT", qty=2), market)
    account.execute(Order(side=OrderSide.SELL, symbol="MSFT", qty=1), market)
    assert account.holdings["MSFT"].shares == 1


# ---------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------

def test_total_value_marks_to_market(account, market):
    account.buy("AAPL", 10, market)
    set_price(market, "AAPL", 250.0)
    assert account.total_value(market) == pytest.approx(8_000.0 + 2_500.0)


def test_total_value_is_idempotent(account, market):
    account.buy("AAPL", 3, market)
    account.buy("TSLA", 2, market)
    assert account.total_value(market) == account.total_value(market)


def test_total_value_with_unlisted_holding_is_consistency_violation(clock, market):
    acct = Account(cash=0.0, holdings=[Holding("GONE", 1, 5.0)], clock=clock)
    with pytest.raises(ConsistencyViolation):
        acct.total_value(market)


def test_record_performance_appends_points(account, market):
    p0 = account.record_performance(market)
    account.buy("AAPL", 10, market)
    set_price(market, "AAPL", 190.0)
    p1 = account.record_performance(market)

    assert account.performance == [p0, p1]
    assert p0.total_value == pytest.approx(10_000.0)
    assert p1.total_value == pytest.approx(9_900.0)
    assert p0.timestamp < p1.timestamp


def test_negative_starting_cash_rejected():
    with pytest.raises(ValueError):
        Account(cash=-1.0)


def test_dict_round_trip(account, market):
    account.buy("AAPL", 10, market)
    account.sell("AAPL", 3, market)
    account.record_performance(market)

    restored = Account.from_dict(account.to_dict(), clock=FakeClock())

    assert restored.cash == account.cash
    assert restored.holdings == account.holdings
    assert restored.transactions == account.transactions
    assert restored.performance == account.performance


def test_non_finite_starting_cash_rejected():
    for bad in (float("nan"), float("inf")):
        with pytest.raises(ValueError):
            Account(cash=bad)


def test_restored_holding_symbol_is_normalized(market):
    held = Holding.from_dict({"symbol": "aapl ", "shares": 4, "avg_cost": 190.0})
    account = Account(cash=0.0, holdings=[held])

    assert held.symbol == "AAPL"
    assert account.position("AAPL") == 4
    account.sell("AAPL", 4, market)
    assert account.cash == pytest.approx(800.0)


def test_restored_closed_holding_must_not_carry_cost_basis():
    with pytest.raises(ValueError):
        Holding.from_dict({"symbol": "AAPL", "shares": 0, "avg_cost": 50.0})
    assert Holding.from_dict({"symbol": "AAPL", "shares": 0, "avg_cost": 0.0}) == Holding("AAPL", 0, 0.0)


def test_duplicate_holdings_rejected():
    with pytest.raises(ValueError):
        Account(cash=0.0, holdings=[Holding("AAPL", 1, 1.0), Holding("AAPL", 2, 1.0)])
