from __future__ import annotations

from typing import Dict, Iterable, Iterator, List

from trade_sim.contracts.market import Instrument, PriceModelProto, normalize_symbol
from trade_sim.exceptions.core import UnknownSymbol
from trade_sim.market.registry import build_price_model
from trade_sim.utils.logger import get_logger, log_debug, log_info


DEFAULT_PRICE_MODEL = {"type": "GAUSSIAN", "params": {}}


class Market:
    """
    Ordered set of instruments plus the price model that moves them.

    Responsibilities:
      - case-insensitive symbol lookup (unknown symbol -> UnknownSymbol)
      - advance prices one tick at a time
      - reset session-open baselines

    The price model (and its random stream) is owned here; when none is
    given a default one is built, which is also how a restored market gets
    a fresh stream.
    """

    def __init__(
        self,
        instruments: Iterable[Instrument] = (),
        price_model: PriceModelProto | None = None,
    ):
        self._instruments: Dict[str, Instrument] = {}
        self.price_model = price_model or build_price_model(
            DEFAULT_PRICE_MODEL["type"], **DEFAULT_PRICE_MODEL["params"]
        )
        self._logger = get_logger(__name__)

        for inst in instruments:
            self.add(inst)

    # -------------------------------------------------
    # Registry of instruments
    # -------------------------------------------------

    def add(self, instrument: Instrument) -> None:
        if instrument.symbol in self._instruments:
            raise ValueError(f"duplicate symbol: {instrument.symbol}")
        self._instruments[instrument.symbol] = instrument

    def get(self, symbol: str) -> Instrument:
        key = normalize_symbol(symbol)
        inst = self._instruments.get(key)
        if inst is None:
            raise UnknownSymbol(key)
        return inst

    def get_price(self, symbol: str) -> float:
        return self.get(symbol).price

    def symbols(self) -> List[str]:
        return list(self._instruments)

    def instruments(self) -> List[Instrument]:
        return list(self._instruments.values())

    def __contains__(self, symbol) -> bool:
        return normalize_symbol(symbol) in self._instruments

    def __iter__(self) -> Iterator[Instrument]:
        return iter(self._instruments.values())

    def __len__(self) -> int:
        return len(self._instruments)

    # -------------------------------------------------
    # Price simulation
    # -------------------------------------------------

    def tick(self, instrument: Instrument) -> float:
        new_price = self.price_model.next_price(instrument.price)
        instrument.price = new_price
        return new_price

    def tick_all(self) -> None:
        for inst in self._instruments.values():
            self.tick(inst)
        log_debug(
            self._logger,
            "Market ticked",
            prices={s: i.price for s, i in self._instruments.items()},
        )

    def new_session(self) -> None:
        for inst in self._instruments.values():
            inst.new_session()
        log_info(self._logger, "Market session opened", symbols=self.symbols())

    def pct_change_from_open(self, symbol: str) -> float:
        return self.get(symbol).pct_change_from_open()

    # -------------------------------------------------
    # Persistence shape
    # -------------------------------------------------

    def to_dict(self) -> Dict:
        return {
            "price_model": self.price_model.spec(),
            "instruments": [inst.to_dict() for inst in self._instruments.values()],
        }

    @classmethod
    def from_dict(cls, d: Dict, price_model: PriceModelProto | None = None) -> "Market":
        if price_model is None:
            spec = d.get("price_model") or DEFAULT_PRICE_MODEL
            price_model = build_price_model(spec["type"], **spec.get("params", {}))
        return cls(
            instruments=[Instrument.from_dict(x) for x in d["instruments"]],
            price_model=price_model,
        )
