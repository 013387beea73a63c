#Description: Trade scheduler: validates configured trades, runs one-off buys at startup and cron jobs for the rest.
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Dict, List, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger
from cron_descriptor import get_description

from models.schemas import TradeSpec
from services.execution import ExecutionService, ExecutionOutcome
from services.notifier import Notifier
from services.weighting import supports_weighting, validate_weight
from utils.config import settings
from utils.errors import (
    ConflictingSizeSpec, EmptyTradeList, MissingCredentials, TradingDisabled,
)
from utils.logging import logger

_DOW_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


class TradeState(str, Enum):
    UNVALIDATED = "unvalidated"
    INVALID = "invalid"
    SCHEDULED = "scheduled"
    FIRING = "firing"


@dataclass
class ScheduledTrade:
    job_id: str
    trade: TradeSpec
    state: TradeState = TradeState.UNVALIDATED
    trigger: Optional[BaseTrigger] = None


@dataclass
class ValidationOutcome:
    valid: List[ScheduledTrade] = field(default_factory=list)
    invalid: List[Tuple[TradeSpec, str]] = field(default_factory=list)


def _cron_day_of_week(expr: str) -> str:
    """
    Crontab counts weekdays from Sunday=0 (7 is Sunday too), APScheduler from Monday=0.
    Numeric items are expanded to weekday names so both agree.
    """
    if expr == "*" or not any(ch.isdigit() for ch in expr):
        return expr
    days = set()
    for part in expr.split(","):
        rng, _, step = part.partition("/")
        if rng == "*":
            lo, hi = 0, 6
        elif "-" in rng:
            lo, hi = (int(x) for x in rng.split("-", 1))
        else:
            lo = hi = int(rng)
            if step:
                hi = 6
        for d in range(lo, hi + 1, int(step) if step else 1):
            days.add(d % 7)
    return ",".join(_DOW_NAMES[d] for d in sorted(days))


def build_trigger(expr: str, timezone: str | None = None) -> BaseTrigger:
    """
    5-field crontab, or 6 fields with a leading seconds column.

    When both day-of-month and day-of-week are restricted, crontab fires if either matches;
    APScheduler requires both, so the two restrictions become separate triggers.
    """
    fields = expr.split()
    if len(fields) == 5:
        fields = ["0"] + fields
    if len(fields) != 6:
        raise ValueError(f"Expected 5 or 6 cron fields, got {len(fields)}: '{expr}'")
    second, minute, hour, day, month, dow = fields
    common = dict(second=second, minute=minute, hour=hour, month=month, timezone=timezone or settings.TIMEZONE)
    dow = _cron_day_of_week(dow)
    if day != "*" and dow != "*":
        return OrTrigger([CronTrigger(day=day, **common), CronTrigger(day_of_week=dow, **common)])
    return CronTrigger(day=day, day_of_week=dow, **common)


def describe_schedule(expr: str | None) -> str:
    if not expr:
        return "immediately."
    try:
        return get_description(expr)
    except Exception:
        return f"on schedule '{expr}'"


def describe_trade(trade: TradeSpec) -> str:
    if trade.parse_error:
        return f"unreadable trade entry ({trade.asset or '?'}/{trade.currency or '?'})"
    when = describe_schedule(trade.schedule)
    if trade.quantity is not None:
        return f"{trade.quantity} {trade.asset} with {trade.currency} {when}"
    return f"{trade.quote_order_qty} {trade.currency} of {trade.asset} {when}"


class TradeScheduler:
    def __init__(self, trading, executor: ExecutionService, notifier: Notifier,
                 scheduler: BaseScheduler | None = None):
        self.trading = trading
        self.executor = executor
        self.notifier = notifier
        self._scheduler = scheduler or BackgroundScheduler(timezone=settings.TIMEZONE)
        self._trades: Dict[str, ScheduledTrade] = {}
        self._in_flight: set[str] = set()
        self._lock = Lock()

    @property
    def trades(self) -> Dict[str, ScheduledTrade]:
        return dict(self._trades)

    def validate(self, trades: List[TradeSpec]) -> ValidationOutcome:
        """
        Startup checks. Credential, empty list, conflicting sizes and bad weight parameters
        raise; any other malformed entry is logged and left out.
        """
        if not getattr(self.trading, "api_key", None) or not getattr(self.trading, "api_secret", None):
            raise MissingCredentials("No Binance API key, please update environment variables, .env file or trades file.")
        if not trades:
            raise EmptyTradeList("No trades to perform, please update environment variables, .env file or trades file.")

        outcome = ValidationOutcome()
        for i, trade in enumerate(trades):
            if trade.quantity is not None and trade.quote_order_qty is not None:
                raise ConflictingSizeSpec(
                    f"Trade #{i + 1} ({trade.pair}): you can not have both quantity and quoteOrderQty options at the same time."
                )
            if trade.weight is not None:
                validate_weight(trade.weight)

            trigger = None
            reason = self._invalid_reason(trade)
            if reason is None and trade.schedule:
                try:
                    trigger = build_trigger(trade.schedule)
                except ValueError as e:
                    reason = f"invalid schedule: {e}"

            if reason:
                logger.error(f"Invalid trade settings, skip this trade ({reason}): {trade.model_dump(by_alias=True)}")
                outcome.invalid.append((trade, reason))
                continue

            if trade.weight is not None and trade.quantity is not None:
                logger.warning(f"Weighting applies to quoteOrderQty trades only, ignored for {trade.pair}")
            elif trade.weight is not None and not supports_weighting(trade.currency):
                logger.warning(f"Weighting is not supported for {trade.currency}, {trade.pair} uses its static amount")

            outcome.valid.append(ScheduledTrade(f"{i}-{trade.pair}", trade, TradeState.SCHEDULED, trigger))
        return outcome

    @staticmethod
    def _invalid_reason(trade: TradeSpec) -> Optional[str]:
        if trade.parse_error:
            return trade.parse_error
        if not trade.asset or not trade.currency:
            return "asset and currency are required"
        size = trade.quantity if trade.quantity is not None else trade.quote_order_qty
        if size is None:
            return "one of quantity or quoteOrderQty is required"
        if size <= 0:
            return "order size must be positive"
        return None

    def check_connectivity(self) -> None:
        """Account info must load and the API key must be allowed to trade."""
        info = self.trading.get_account_info()
        if not info.can_trade:
            raise TradingDisabled("Check your Binance API key settings, it appears that trades are not enabled.")

    def start(self, trades: List[TradeSpec], outcome: ValidationOutcome | None = None) -> ValidationOutcome:
        outcome = outcome or self.validate(trades)
        if not self._scheduler.running:
            self._scheduler.start()

        for st in outcome.valid:
            self._trades[st.job_id] = st
            t = st.trade
            if t.quantity is not None:
                logger.info(f"CRON set up to buy {t.quantity} {t.asset} with {t.currency} {describe_schedule(t.schedule)}")
            else:
                logger.info(f"CRON set up to buy {t.quote_order_qty} {t.currency} of {t.asset} {describe_schedule(t.schedule)}")

            if st.trigger is None:
                self._run(st.job_id)
            else:
                self._scheduler.add_job(self._run, st.trigger, args=[st.job_id], id=st.job_id,
                                        name=describe_trade(t), max_instances=1, coalesce=True)

        self.notifier.notify(
            "🏁 Binance DCA Bot Started",
            f"_Date:_ {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n```\n{self.summary(trades, outcome)}```",
        )
        return outcome

    def summary(self, trades: List[TradeSpec], outcome: ValidationOutcome | None = None) -> str:
        skipped = {id(t): reason for t, reason in (outcome.invalid if outcome else [])}
        lines = []
        for t in trades:
            line = describe_trade(t)
            if id(t) in skipped:
                line += f" (skipped: {skipped[id(t)]})"
            lines.append(line)
        return "\n".join(lines)

    def fire(self, job_id: str) -> Optional[ExecutionOutcome]:
        """Run a registered trade now, outside its timer."""
        if job_id not in self._trades:
            raise KeyError(f"Unknown trade job '{job_id}'")
        return self._run(job_id)

    def _run(self, job_id: str) -> Optional[ExecutionOutcome]:
        st = self._trades[job_id]
        with self._lock:
            if job_id in self._in_flight:
                logger.warning(f"Previous firing of {st.trade.pair} still running, skipping this one")
                return None
            self._in_flight.add(job_id)
            st.state = TradeState.FIRING
        try:
            return self.executor.execute(st.trade)
        finally:
            with self._lock:
                self._in_flight.discard(job_id)
                st.state = TradeState.SCHEDULED

    def shutdown(self, wait: bool = True):
        """Lets in-flight executions finish unless wait is False."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Scheduler stopped.")
