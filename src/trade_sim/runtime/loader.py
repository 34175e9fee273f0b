# runtime/loader.py
from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Callable

from trade_sim.market.loader import DEFAULT_INSTRUMENTS, MarketLoader
from trade_sim.persistence.gateway import DEFAULT_UNIT, JsonFileGateway
from trade_sim.portfolio.account import DEFAULT_STARTING_CASH, Account
from trade_sim.runtime.session import TradingSession
from trade_sim.utils.clock import now_ms
from trade_sim.utils.logger import get_logger, log_debug, log_info
from trade_sim.utils.paths import configs_root, resolve_data_path

DEFAULT_CONFIG_PATH = configs_root() / "sandbox.json"

DEFAULT_CONFIG = {
    "account": {"starting_cash": DEFAULT_STARTING_CASH},
    "market": {
        "price_model": {"type": "GAUSSIAN", "params": {"volatility": 0.005, "floor": 0.01}},
        "instruments": DEFAULT_INSTRUMENTS,
    },
    "persistence": {"root": "data", "name": DEFAULT_UNIT},
}


# sections replaced wholesale, never deep-merged
_REPLACE_KEYS = {"price_model"}


def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if key in _REPLACE_KEYS:
            out[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def load_config(path: str | Path | None = None) -> dict:
    """
    Read the sandbox json config and lay it over DEFAULT_CONFIG.

    A missing default file falls back to DEFAULT_CONFIG; an explicitly
    requested file that does not exist is an error.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return copy.deepcopy(DEFAULT_CONFIG)
    with open(cfg_path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise TypeError(f"{cfg_path}: top-level config must be a json object")
    return _merge(DEFAULT_CONFIG, raw)


class SessionLoader:
    _logger = get_logger(__name__)

    @staticmethod
    def from_config(cfg: dict, clock: Callable[[], int] = now_ms) -> TradingSession:
        log_debug(SessionLoader._logger, "SessionLoader received config", config=cfg)
        cfg = _merge(DEFAULT_CONFIG, cfg)

        market = MarketLoader.from_config(cfg["market"])
        account = Account(cash=cfg["account"]["starting_cash"], clock=clock)

        persist_cfg = cfg["persistence"]
        root = resolve_data_path(persist_cfg["root"])
        gateway = JsonFileGateway(root, clock=clock)

        session = TradingSession(market=market, account=account, gateway=gateway, unit=persist_cfg["name"])
        log_info(
            SessionLoader._logger,
            "SessionLoader built session",
            symbols=market.symbols(),
            starting_cash=account.cash,
            save_path=gateway.path_for(session.unit),
        )
        return session
