from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from trade_sim.contracts.execution.order import Order, OrderSide
from trade_sim.contracts.persistence import PersistenceGatewayProto, SaveBundle
from trade_sim.contracts.portfolio import PerformancePoint, Transaction
from trade_sim.exceptions.core import ConsistencyViolation, InvalidOrder
from trade_sim.market.market import Market
from trade_sim.persistence.gateway import DEFAULT_UNIT
from trade_sim.portfolio.account import Account
from trade_sim.portfolio.report import (
    HoldingView,
    InstrumentView,
    PerformanceView,
    holding_view,
    instrument_view,
    performance_views,
)
from trade_sim.utils.logger import get_logger, log_debug, log_info, log_warn
from trade_sim.utils.timer import timed_block


@dataclass(frozen=True)
class OrderResult:
    """Outcome of a buy/sell request: exactly one of transaction / error is set."""
    order: Order
    transaction: Optional[Transaction] = None
    error: Optional[InvalidOrder] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str:
        return "" if self.error is None else str(self.error)


class TradingSession:
    """
    Caller-facing facade over one Market and one Account.

    Semantics:
      - order failures come back as OrderResult(error=...), never raised
      - persistence failures propagate (PersistenceFailure)
      - consistency violations propagate untouched
      - load() swaps in the restored Market and Account wholesale
    """

    def __init__(
        self,
        market: Market,
        account: Account,
        gateway: PersistenceGatewayProto | None = None,
        unit: str = DEFAULT_UNIT,
    ):
        self.market = market
        self.account = account
        self.gateway = gateway
        self.unit = unit
        self._logger = get_logger(__name__)

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------

    def new_session(self) -> None:
        self.market.new_session()

    def start(self) -> PerformancePoint:
        """Open a session and record the baseline performance point."""
        self.new_session()
        return self.record_performance()

    def tick_market(self) -> List[InstrumentView]:
        with timed_block("session.tick", self._logger):
            self.market.tick_all()
        return self.list_instruments()

    def record_performance(self) -> PerformancePoint:
        return self.account.record_performance(self.market)

    # -------------------------------------------------
    # Orders
    # -------------------------------------------------

    def buy(self, symbol: str, qty: int, tag: str = "") -> OrderResult:
        return self.submit(Order(side=OrderSide.BUY, symbol=symbol, qty=qty, tag=tag))

    def sell(self, symbol: str, qty: int, tag: str = "") -> OrderResult:
        return self.submit(Order(side=OrderSide.SELL, symbol=symbol, qty=qty, tag=tag))

    def submit(self, order: Order) -> OrderResult:
        log_debug(self._logger, "Order received", order=order.to_dict())
        try:
            tx = self.account.execute(order, self.market)
        except InvalidOrder as e:
            log_warn(
                self._logger,
                "Order rejected",
                order=order.to_dict(),
                error=type(e).__name__,
                reason=str(e),
            )
            return OrderResult(order=order, error=e)
        return OrderResult(order=order, transaction=tx)

    # -------------------------------------------------
    # Queries
    # -------------------------------------------------

    @property
    def cash(self) -> float:
        return self.account.cash

    def price(self, symbol: str) -> float:
        return self.market.get_price(symbol)

    def total_value(self) -> float:
        return self.account.total_value(self.market)

    def list_instruments(self) -> List[InstrumentView]:
        return [instrument_view(inst) for inst in self.market]

    def list_holdings(self) -> List[HoldingView]:
        return [
            holding_view(h, self.account.mark_price(h.symbol, self.market))
            for h in self.account.holdings.values()
        ]

    def recent_transactions(self, n: int = 8) -> List[Transaction]:
        if n <= 0:
            return []
        return self.account.transactions[-n:]

    def recent_performance(self, n: int = 10) -> List[PerformanceView]:
        return performance_views(self.account.performance, last=n)

    # -------------------------------------------------
    # Persistence
    # -------------------------------------------------

    def _require_gateway(self) -> PersistenceGatewayProto:
        if self.gateway is None:
            raise ConsistencyViolation("TradingSession has no persistence gateway")
        return self.gateway

    def has_saved_state(self) -> bool:
        return self._require_gateway().exists(self.unit)

    def save(self) -> None:
        gateway = self._require_gateway()
        with timed_block("session.save", self._logger):
            gateway.save(SaveBundle(market=self.market, account=self.account), self.unit)

    def load(self) -> None:
        gateway = self._require_gateway()
        with timed_block("session.load", self._logger):
            bundle = gateway.load(self.unit)
        # keep the injected clock across reloads
        bundle.account.clock = self.account.clock
        self.market = bundle.market
        self.account = bundle.account
        log_info(
            self._logger,
            "Session state replaced from saved bundle",
            unit=self.unit,
            cash=self.account.cash,
            holdings=len(self.account.holdings),
        )
