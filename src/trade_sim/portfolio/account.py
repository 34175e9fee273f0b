from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List

from trade_sim.contracts.execution.order import Order, OrderSide
from trade_sim.contracts.market import normalize_symbol
from trade_sim.contracts.portfolio import Holding, PerformancePoint, Transaction
from trade_sim.exceptions.core import (
    ConsistencyViolation,
    InsufficientCash,
    InsufficientShares,
    InvalidOrder,
    InvalidQuantity,
    UnknownSymbol,
)
from trade_sim.market.market import Market
from trade_sim.utils.clock import now_ms
from trade_sim.utils.logger import get_logger, log_debug, log_trade

EPS = 1e-9
DEFAULT_STARTING_CASH = 10_000.00


def _validate_qty(shares) -> int:
    # bool is an int subclass; True is not a share count
    if isinstance(shares, bool) or not isinstance(shares, int) or shares <= 0:
        raise InvalidQuantity(shares)
    return shares


class Account:
    """
    Single-user cash + holdings account.

    Every order is all-or-nothing: prices, costs and the new holding state
    are computed and every precondition is checked before the first
    mutation.

    Invariants:
      - cash >= 0
      - holding.shares >= 0, avg_cost == 0 whenever shares == 0
      - BUY moves exactly `price * shares` from cash into the holding,
        SELL moves exactly `price * shares` back (no fees, no slippage)
    """

    def __init__(
        self,
        cash: float = DEFAULT_STARTING_CASH,
        holdings: Iterable[Holding] = (),
        transactions: Iterable[Transaction] = (),
        performance: Iterable[PerformancePoint] = (),
        clock: Callable[[], int] = now_ms,
    ):
        cash = float(cash)
        if not math.isfinite(cash) or cash < 0:
            raise ValueError(f"starting cash must be a finite amount >= 0, got {cash}")
        self.cash = cash
        self.holdings: Dict[str, Holding] = {}
        for h in holdings:
            if h.symbol in self.holdings:
                raise ValueError(f"duplicate holding: {h.symbol}")
            self.holdings[h.symbol] = h
        self.transactions: List[Transaction] = list(transactions)
        self.performance: List[PerformancePoint] = list(performance)
        self.clock = clock
        self._logger = get_logger(__name__)

    # -------------------------------------------------
    # Orders
    # -------------------------------------------------

    def buy(self, symbol: str, shares: int, market: Market) -> Transaction:
        shares = _validate_qty(shares)
        inst = market.get(symbol)
        price = inst.price
        if price <= 0:
            raise InvalidOrder(f"Invalid price for {inst.symbol}: {price}")
        cost = price * shares
        if cost > self.cash + EPS:
            raise InsufficientCash(required=cost, available=self.cash)

        held = self.holdings.get(inst.symbol)
        old_shares = held.shares if held else 0
        old_avg = held.avg_cost if held else 0.0
        new_shares = old_shares + shares
        new_avg = (old_shares * old_avg + cost) / new_shares
        new_cash = self.cash - cost
        if new_cash < 0:
            # only reachable inside the EPS tolerance
            new_cash = 0.0
        ts = self.clock()

        # ---- apply ----
        if held is None:
            held = self.holdings[inst.symbol] = Holding(symbol=inst.symbol)
        held.shares = new_shares
        held.avg_cost = new_avg
        self.cash = new_cash
        return self._journal(ts, OrderSide.BUY, inst.symbol, shares, price)

    def sell(self, symbol: str, shares: int, market: Market) -> Transaction:
        shares = _validate_qty(shares)
        inst = market.get(symbol)
        price = inst.price
        held = self.holdings.get(inst.symbol)
        held_shares = held.shares if held else 0
        if held is None or held_shares < shares:
            raise InsufficientShares(inst.symbol, requested=shares, held=held_shares)

        proceeds = price * shares
        new_shares = held_shares - shares
        ts = self.clock()

        # ---- apply ----
        held.shares = new_shares
        if new_shares == 0:
            held.avg_cost = 0.0
        self.cash += proceeds
        return self._journal(ts, OrderSide.SELL, inst.symbol, shares, price)

    def execute(self, order: Order, market: Market) -> Transaction:
        if order.side is OrderSide.BUY:
            return self.buy(order.symbol, order.qty, market)
        return self.sell(order.symbol, order.qty, market)

    def _journal(self, ts: int, side: OrderSide, symbol: str, shares: int, price: float) -> Transaction:
        tx = Transaction(
            timestamp=ts,
            side=side,
            symbol=symbol,
            shares=shares,
            price=price,
            cash_after=self.cash,
        )
        self.transactions.append(tx)
        held = self.holdings[symbol]
        log_trade(
            self._logger,
            "Order executed",
            side=side,
            symbol=symbol,
            shares=shares,
            price=price,
            cash_after=self.cash,
            position=held.shares,
            avg_cost=held.avg_cost,
        )
        return tx

    # -------------------------------------------------
    # Valuation
    # -------------------------------------------------

    def mark_price(self, symbol: str, market: Market) -> float:
        """Current price of a held symbol; an unlisted one is an internal fault."""
        try:
            return market.get_price(symbol)
        except UnknownSymbol as e:
            raise ConsistencyViolation(f"held symbol {symbol} is not listed in the market") from e

    def holdings_value(self, market: Market) -> float:
        return sum(h.market_value(self.mark_price(h.symbol, market)) for h in self.holdings.values())

    def total_value(self, market: Market) -> float:
        return self.cash + self.holdings_value(market)

    def record_performance(self, market: Market) -> PerformancePoint:
        point = PerformancePoint(timestamp=self.clock(), total_value=self.total_value(market))
        self.performance.append(point)
        log_debug(self._logger, "Performance recorded", total_value=point.total_value, points=len(self.performance))
        return point

    def position(self, symbol: str) -> int:
        held = self.holdings.get(normalize_symbol(symbol))
        return held.shares if held else 0

    # -------------------------------------------------
    # Persistence shape
    # -------------------------------------------------

    def to_dict(self) -> Dict:
        return {
            "cash": self.cash,
            "holdings": [h.to_dict() for h in self.holdings.values()],
            "transactions": [t.to_dict() for t in self.transactions],
            "performance": [p.to_dict() for p in self.performance],
        }

    @classmethod
    def from_dict(cls, d: Dict, clock: Callable[[], int] = now_ms) -> "Account":
        return cls(
            cash=d["cash"],
            holdings=[Holding.from_dict(x) for x in d.get("holdings", [])],
            transactions=[Transaction.from_dict(x) for x in d.get("transactions", [])],
            performance=[PerformancePoint.from_dict(x) for x in d.get("performance", [])],
            clock=clock,
        )
