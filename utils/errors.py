#Description: Error taxonomy for startup configuration and exchange failures.


class DCABotError(Exception):
    """Root of every error raised by the bot itself."""


class ConfigurationError(DCABotError):
    """Fatal at startup: nothing gets scheduled."""


class MissingCredentials(ConfigurationError):
    pass


class EmptyTradeList(ConfigurationError):
    pass


class ConflictingSizeSpec(ConfigurationError):
    pass


class InvalidWeightSpec(ConfigurationError):
    pass


class InvalidTradeConfig(ConfigurationError):
    """TRADES is not a readable JSON array."""


class ExchangeError(DCABotError):
    """Exchange answered with an error body instead of data."""

    def __init__(self, msg: str, code: int | None = None):
        super().__init__(msg)
        self.msg = msg
        self.code = code

    @property
    def is_credential_error(self) -> bool:
        # -2014 bad key format, -2015 invalid key/IP/permissions, -1022 bad signature
        return self.code in (-2014, -2015, -1022)


class TradingDisabled(ConfigurationError):
    pass
