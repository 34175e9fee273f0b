from __future__ import annotations

from typing import Dict

import numpy as np

from .registry import register_price_model
from trade_sim.utils.logger import get_logger, log_debug


DEFAULT_VOLATILITY = 0.005   # ~0.5% std dev per tick
DEFAULT_FLOOR = 0.01


@register_price_model("GAUSSIAN")
class GaussianPriceModel:
    """
    Multiplicative random walk:

        p' = max(floor, p * (1 + N(0, volatility)))

    The numpy Generator is created once here and then advanced by every
    call; pass `seed` (or a ready `rng`) for reproducible paths.
    """

    def __init__(
        self,
        volatility: float = DEFAULT_VOLATILITY,
        floor: float = DEFAULT_FLOOR,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ):
        if volatility < 0:
            raise ValueError(f"volatility must be >= 0, got {volatility}")
        if floor <= 0:
            raise ValueError(f"floor must be > 0, got {floor}")
        self.volatility = float(volatility)
        self.floor = float(floor)
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self._logger = get_logger(__name__)

    def next_price(self, price: float) -> float:
        pct_move = float(self.rng.normal(0.0, self.volatility))
        new_price = max(self.floor, price * (1.0 + pct_move))
        log_debug(self._logger, "GaussianPriceModel step", price=price, pct_move=pct_move, new_price=new_price)
        return new_price

    def spec(self) -> Dict:
        # no seed: a restored market always starts a fresh stream
        return {"type": self.name, "params": {"volatility": self.volatility, "floor": self.floor}}


@register_price_model("STATIC")
class StaticPriceModel:
    """Prices never move. For replaying order flows at fixed prices."""

    def next_price(self, price: float) -> float:
        return price

    def spec(self) -> Dict:
        return {"type": self.name, "params": {}}
