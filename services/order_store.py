#Description: Best-effort persistence of executed orders.

from typing import Callable

from sqlalchemy.orm import Session

from models.db import get_session
from models.orm import Order
from models.schemas import OrderResult, ms_to_datetime
from utils.logging import logger


class OrderStore:
    def __init__(self, session_factory: Callable[[], Session] = get_session):
        self._session_factory = session_factory

    def save_order(self, result: OrderResult) -> bool:
        qty = result.executed_qty
        try:
            with self._session_factory() as db:
                db.add(Order(
                    exchange_order_id=str(result.order_id),
                    symbol=result.symbol or "",
                    status=result.status,
                    qty=qty,
                    quote_qty=result.cummulative_quote_qty,
                    avg_price=(result.cummulative_quote_qty / qty) if qty else None,
                    fills=[f.model_dump(by_alias=True) for f in result.fills],
                    raw=result.raw,
                    ts_transact=ms_to_datetime(result.transact_time),
                ))
                db.commit()
            return True
        except Exception as e:
            logger.exception(f"Saving order {result.order_id} failed: {e}")
            return False
