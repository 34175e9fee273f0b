from dataclasses import dataclass
from enum import Enum


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Order:
    """Immediate-execution market order; fills at the current market price."""
    side: OrderSide
    symbol: str
    qty: int
    tag: str = ""             # caller tag, e.g. "shell"

    def to_dict(self):
        return {
            "side": self.side.value,
            "symbol": self.symbol,
            "qty": self.qty,
            "tag": self.tag,
        }
