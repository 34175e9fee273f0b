from trade_sim.contracts.market import Instrument
from .market import Market, DEFAULT_PRICE_MODEL
from .registry import build_price_model
from trade_sim.utils.logger import get_logger, log_debug

DEFAULT_INSTRUMENTS = [
    {"symbol": "AAPL", "name": "Apple Inc.", "price": 200.00},
    {"symbol": "GOOG", "name": "Alphabet Inc.", "price": 2800.00},
    {"symbol": "MSFT", "name": "Microsoft Corp.", "price": 420.00},
    {"symbol": "AMZN", "name": "Amazon.com Inc.", "price": 160.00},
    {"symbol": "TSLA", "name": "Tesla Inc.", "price": 230.00},
]


class MarketLoader:
    _logger = get_logger(__name__)

    @staticmethod
    def from_config(cfg: dict) -> Market:
        """
        Build a Market from a `market` config section:

            {"price_model": {"type": "GAUSSIAN", "params": {...}},
             "instruments": [{"symbol": ..., "name": ..., "price": ...}, ...]}
        """
        log_debug(MarketLoader._logger, "MarketLoader received config", config=cfg)
        model_cfg = cfg.get("price_model") or DEFAULT_PRICE_MODEL
        price_model = build_price_model(model_cfg["type"], **model_cfg.get("params", {}))

        rows = cfg.get("instruments") or DEFAULT_INSTRUMENTS
        instruments = [Instrument(symbol=r["symbol"], name=r.get("name", r["symbol"]), price=r["price"]) for r in rows]
        log_debug(MarketLoader._logger, "MarketLoader built market", price_model=model_cfg["type"], symbols=[i.symbol for i in instruments])
        return Market(instruments=instruments, price_model=price_model)
