class MarketAlertError(Exception):
    """Base class for errors that abort a run."""


class ConfigError(MarketAlertError):
    pass


class IndexFetchError(MarketAlertError):
    """One or more index lookups failed. Carries (ticker, exception) pairs."""

    def __init__(self, failures: list[tuple[str, Exception]]):
        self.failures = failures
        detail = "; ".join(f"{ticker}: {exc!r}" for ticker, exc in failures)
        super().__init__(f"Index lookup failed for {len(failures)} ticker(s): {detail}")


class MailError(MarketAlertError):
    pass
