#Description: Pydantic settings loader with defaults, reading .env; trade list parsing.
import json
import pathlib
from typing import List

from pydantic_settings import BaseSettings
from pydantic import Field, ValidationError
from dotenv import load_dotenv

env_path = pathlib.Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

class Settings(BaseSettings):
    APP_ENV: str = Field(default="development")
    DATABASE_URL: str = Field(default="sqlite:///./dca_orders.db")
    DEBUG: bool = Field(default=False)
    PORT: int = Field(default=3000)
    TIMEZONE: str = Field(default="UTC")

    # Trades: JSON list in the environment, or a file next to the app
    TRADES: str | None = None
    TRADES_FILE: str = Field(default="trades.json")

    BINANCE_KEY: str | None = None
    BINANCE_SECRET: str | None = None
    BINANCE_TESTNET: bool = Field(default=False)
    BINANCE_USNET: bool = Field(default=False)

    TELEGRAM_TOKEN: str | None = None
    TELEGRAM_CHAT_ID: str | None = None

    SENDGRID_SECRET: str | None = None
    SENDGRID_TO: str | None = None
    SENDGRID_FROM: str | None = None

    TAAPI_KEY: str | None = None

    # Warn when fewer than this many trades of the same size remain affordable
    LOW_BALANCE_THRESHOLD: float = Field(default=5)
    WEIGHT_CURRENCY: str = Field(default="USD")
    SMA_INTERVAL: str = Field(default="1d")
    SMA_PERIOD: int = Field(default=200)
    INDICATOR_MAX_ATTEMPTS: int = Field(default=2)
    INDICATOR_BACKOFF_SECONDS: float = Field(default=15.0)
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0)

    class Config:
        env_file = ".env"
        extra = "allow"

settings = Settings()


def _text_or_none(value):
    return value if isinstance(value, str) and value else None


def load_trades(cfg: Settings | None = None) -> List["TradeSpec"]:
    """
    Build the configured trade list.

    The TRADES environment variable (a JSON array) wins over TRADES_FILE. A weight block
    that does not parse raises InvalidWeightSpec. Any other entry that does not parse is
    kept with its parse_error set, so the scheduler skips it and the startup summary lists it.
    """
    from models.schemas import TradeSpec
    from utils.errors import InvalidTradeConfig, InvalidWeightSpec

    cfg = cfg or settings
    raw = None
    try:
        if cfg.TRADES:
            raw = json.loads(cfg.TRADES)
        else:
            path = pathlib.Path(cfg.TRADES_FILE)
            if path.exists():
                raw = json.loads(path.read_text())
    except (ValueError, OSError) as e:
        raise InvalidTradeConfig(f"Could not read trades: {e}") from e
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidTradeConfig("TRADES must be a JSON array of trade objects")

    trades: List[TradeSpec] = []
    for i, entry in enumerate(raw):
        try:
            trades.append(TradeSpec.model_validate(entry))
        except ValidationError as e:
            errors = e.errors()
            if any(err["loc"] and err["loc"][0] == "weight" for err in errors):
                raise InvalidWeightSpec(f"Trade #{i + 1}: invalid weight settings ({errors[0]['msg']})") from e
            fields = entry if isinstance(entry, dict) else {}
            trades.append(TradeSpec.model_construct(
                asset=_text_or_none(fields.get("asset")),
                currency=_text_or_none(fields.get("currency")),
                parse_error="; ".join(f"{'.'.join(map(str, err['loc'])) or 'entry'}: {err['msg']}" for err in errors),
            ))
    return trades
