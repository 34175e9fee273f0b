from dataclasses import dataclass
from typing import Protocol

from trade_sim.market.market import Market
from trade_sim.portfolio.account import Account


@dataclass
class SaveBundle:
    """Market and Account always travel together."""
    market: Market
    account: Account


class PersistenceGatewayProto(Protocol):
    """
    Durable store for one SaveBundle per name.
    Implementations raise PersistenceFailure on any I/O or decode error.
    """

    def save(self, bundle: SaveBundle, name: str = ...) -> None:
        ...

    def load(self, name: str = ...) -> SaveBundle:
        ...

    def exists(self, name: str = ...) -> bool:
        ...
