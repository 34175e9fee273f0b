import os
import random

import numpy as np
import pytest

from helpers.factories import FakeClock, make_market
from trade_sim.portfolio.account import Account


@pytest.fixture(autouse=True)
def _seed_everything():
    random.seed(0)
    np.random.seed(0)
    os.environ.setdefault("PYTHONHASHSEED", "0")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def market():
    """Fixed-price market (STATIC model); tests move prices by hand."""
    return make_market({"AAPL": 200.0, "MSFT": 420.0, "TSLA": 230.0})


@pytest.fixture
def account(clock):
    return Account(cash=10_000.00, clock=clock)
