#Description: Process entrypoint. Wires clients into the scheduler, runs one-off buys, then keeps cron jobs alive.

import signal
import sys
import threading
from datetime import datetime

import httpx

from adapters.binance_spot import BinanceSpotAdapter
from adapters.sendgrid import SendGridChannel
from adapters.taapi import TAAPIAdapter
from adapters.telegram import TelegramChannel
from models.db import init_db
from services.execution import ExecutionService
from services.health import start_health_server
from services.notifier import Notifier
from services.order_store import OrderStore
from services.scheduler import TradeScheduler
from services.weighting import WeightService
from utils.config import settings, load_trades
from utils.errors import ConfigurationError, ExchangeError
from utils.logging import logger


def build_scheduler() -> TradeScheduler:
    trading = BinanceSpotAdapter()
    notifier = Notifier([TelegramChannel(), SendGridChannel()])
    weights = WeightService(trading, TAAPIAdapter())
    executor = ExecutionService(trading, notifier, OrderStore(), weights)
    return TradeScheduler(trading, executor, notifier)


def run_bot() -> int:
    logger.info(f"Starting Binance DCA Bot [{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}]")
    start_health_server()
    init_db()

    scheduler = build_scheduler()
    try:
        trades = load_trades(settings)
        outcome = scheduler.validate(trades)
        scheduler.check_connectivity()
        scheduler.start(trades, outcome)
    except ConfigurationError as e:
        logger.error(str(e))
        scheduler.shutdown(wait=False)
        return 1
    except ExchangeError as e:
        logger.error(f"Binance connectivity check failed: [{e.code}] {e.msg}")
        scheduler.shutdown(wait=False)
        return 1
    except httpx.HTTPError as e:
        logger.error(f"Could not reach Binance: {e}")
        scheduler.shutdown(wait=False)
        return 1

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    stop.wait()
    logger.info("Shutting down, waiting for running orders to finish")
    scheduler.shutdown(wait=True)
    return 0


if __name__ == "__main__":
    sys.exit(run_bot())
