from __future__ import annotations

from typing import Any, Callable, Dict

from trade_sim.contracts.persistence import SaveBundle
from trade_sim.exceptions.core import PersistenceFailure
from trade_sim.market.market import Market
from trade_sim.portfolio.account import Account
from trade_sim.utils.clock import now_ms

BUNDLE_VERSION = 1


def encode_bundle(bundle: SaveBundle) -> Dict[str, Any]:
    return {
        "version": BUNDLE_VERSION,
        "market": bundle.market.to_dict(),
        "account": bundle.account.to_dict(),
    }


def decode_bundle(raw: Any, clock: Callable[[], int] = now_ms) -> SaveBundle:
    """
    Rebuild a SaveBundle from its json document.

    Any structural problem (missing keys, wrong types, negative or
    non-finite amounts, unknown enum values, unsupported version, holdings
    in symbols the market does not list) becomes PersistenceFailure.
    """
    if not isinstance(raw, dict):
        raise PersistenceFailure(f"bundle must be a json object, got {type(raw).__name__}")
    version = raw.get("version")
    if version != BUNDLE_VERSION:
        raise PersistenceFailure(f"unsupported bundle version: {version!r}")
    for section in ("market", "account"):
        if not isinstance(raw.get(section), dict):
            raise PersistenceFailure(f"bundle section {section!r} must be a json object")

    try:
        market = Market.from_dict(raw["market"])
        account = Account.from_dict(raw["account"], clock=clock)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceFailure(f"corrupt bundle: {type(e).__name__}: {e}") from e

    unlisted = [s for s in account.holdings if s not in market]
    if unlisted:
        raise PersistenceFailure(f"corrupt bundle: holdings in unlisted symbols {unlisted}")

    return SaveBundle(market=market, account=account)
