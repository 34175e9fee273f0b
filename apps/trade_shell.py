#!/usr/bin/env python3
from __future__ import annotations

import argparse
import time
from typing import Callable

from trade_sim.exceptions.core import FatalError, PersistenceFailure, TradeSimError
from trade_sim.runtime.loader import SessionLoader, load_config
from trade_sim.runtime.session import TradingSession
from trade_sim.utils.clock import to_datetime
from trade_sim.utils.logger import get_logger, init_logging, log_exception, log_info


logger = get_logger(__name__)

MENU = "Menu: [1] Market [2] Buy [3] Sell [4] Portfolio [5] Performance [6] Save [7] Load [0] Exit"


def fmt(v: float) -> str:
    return f"{v:,.2f}"


def truncate(s: str, n: int) -> str:
    if len(s) <= n:
        return s
    return s[: max(0, n - 1)] + "…"


def show_market(session: TradingSession) -> None:
    print("\n--- Market Data ---")
    print(f"{'SYM':<6} {'NAME':<18} {'PRICE':>10} {'CHG%':>10}")
    for row in session.list_instruments():
        print(f"{row.symbol:<6} {truncate(row.name, 18):<18} {fmt(row.price):>10} {row.pct_change:>9.2f}%")


def show_portfolio(session: TradingSession) -> None:
    print("\n--- Portfolio ---")
    print(f"Cash: ${fmt(session.cash)}")
    print(f"{'SYM':<6} {'SHARES':>8} {'AVG COST':>10} {'PRICE':>12} {'MKT VALUE':>12} {'P/L%':>10}")
    for row in session.list_holdings():
        print(
            f"{row.symbol:<6} {row.shares:>8d} {fmt(row.avg_cost):>10} {fmt(row.price):>12} "
            f"{fmt(row.market_value):>12} {row.pnl_pct:>9.2f}%"
        )
    print(f"Total Value: ${fmt(session.total_value())}")

    print("\nRecent Transactions:")
    for tx in reversed(session.recent_transactions(8)):
        print(f"  {tx.describe()}")


def show_performance(session: TradingSession) -> None:
    print("\n--- Performance (latest 10 points) ---")
    for row in session.recent_performance(10):
        when = to_datetime(row.timestamp).astimezone().strftime("%H:%M:%S")
        print(f"{when} | {fmt(row.total_value)} | {row.pct_change:+.2f}%")


def order_flow(session: TradingSession, side: str, ask: Callable[[str], str]) -> None:
    symbol = ask(f"Symbol to {side}: ").strip().upper()
    qty = int(ask("Shares: ").strip())

    price = session.price(symbol)
    answer = ask(f"Confirm {side} {qty} {symbol} @ {fmt(price)} = {fmt(price * qty)} ? (y/n): ")
    if not answer.strip().lower().startswith("y"):
        print("Cancelled.")
        return

    if side == "BUY":
        result = session.buy(symbol, qty, tag="shell")
    else:
        result = session.sell(symbol, qty, tag="shell")
    if not result.ok:
        print(f"Order rejected: {result.reason}")
        return
    verb = "Bought" if side == "BUY" else "Sold"
    print(f"{verb}. Cash now: ${fmt(session.cash)}")


def auto_save_on_exit(session: TradingSession) -> None:
    try:
        session.save()
        print(f"Auto-saved to {session.gateway.path_for(session.unit)}")
    except PersistenceFailure as e:
        # exit never blocks on a failed save
        log_exception(logger, "shell.autosave_failed", error=str(e))


def run(session: TradingSession, ask: Callable[[str], str] = input) -> None:
    print("=== Stock Trading Sandbox ===")
    print(f"Starting cash: ${fmt(session.cash)}")
    session.start()

    while True:
        session.tick_market()
        session.record_performance()

        print()
        print(MENU)
        choice = ask("Choose: ").strip()

        try:
            if choice == "1":
                show_market(session)
            elif choice == "2":
                order_flow(session, "BUY", ask)
            elif choice == "3":
                order_flow(session, "SELL", ask)
            elif choice == "4":
                show_portfolio(session)
            elif choice == "5":
                show_performance(session)
            elif choice == "6":
                session.save()
                print(f"Saved to {session.gateway.path_for(session.unit)}")
            elif choice == "7":
                session.load()
                print(f"Loaded from {session.gateway.path_for(session.unit)}")
            elif choice == "0":
                auto_save_on_exit(session)
                break
            else:
                print("Invalid option.")
        except FatalError:
            raise
        except (TradeSimError, ValueError) as e:
            print(f"! {e}")

    print("Goodbye.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Interactive stock trading sandbox.")
    parser.add_argument("--config", default=None, help="sandbox config (json)")
    parser.add_argument("--log-config", default=None, help="logging config (json)")
    parser.add_argument("--run-id", default=None, help="run id for log context")
    args = parser.parse_args()

    run_id = args.run_id or f"shell_{int(time.time())}"
    init_logging(config_path=args.log_config, run_id=run_id, mode="shell")

    session = SessionLoader.from_config(load_config(args.config))
    log_info(logger, "shell.start", run_id=run_id)
    try:
        run(session)
    except (KeyboardInterrupt, EOFError):
        print()
        auto_save_on_exit(session)


if __name__ == "__main__":
    main()
