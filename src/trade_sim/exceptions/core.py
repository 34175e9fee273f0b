from __future__ import annotations


class TradeSimError(Exception):
    """Root of every error raised by the sandbox engine."""


# ---------------------------------------------------------------------
# Order validation (recoverable, reported to the caller)
# ---------------------------------------------------------------------

class InvalidOrder(TradeSimError):
    """An order precondition was violated. Nothing was applied."""


class UnknownSymbol(InvalidOrder):
    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Unknown symbol: {symbol}")


class InvalidQuantity(InvalidOrder):
    def __init__(self, qty):
        self.qty = qty
        super().__init__(f"Shares must be positive, got {qty}")


class InsufficientCash(InvalidOrder):
    def __init__(self, required: float, available: float):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient cash: need {required:.2f}, have {available:.2f}")


class InsufficientShares(InvalidOrder):
    def __init__(self, symbol: str, requested: int, held: int):
        self.symbol = symbol
        self.requested = requested
        self.held = held
        super().__init__(f"Not enough shares to sell: {symbol} requested {requested}, held {held}")


# ---------------------------------------------------------------------
# Boundary failures
# ---------------------------------------------------------------------

class PersistenceFailure(TradeSimError):
    """Save/load I/O failed or the stored bundle is unreadable."""


# ---------------------------------------------------------------------
# Programming-logic faults (never swallowed)
# ---------------------------------------------------------------------

class FatalError(TradeSimError):
    pass


class ConsistencyViolation(FatalError):
    """An internal invariant no longer holds."""
