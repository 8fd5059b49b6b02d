"""Typed exceptions for the data and flow layers."""


class OptionableError(Exception):
    """Base class for errors raised by optionable."""


class DataUnavailable(OptionableError):
    """A refresh cannot produce results (no records, venue unreachable)."""

    def __init__(self, ticker: str, message: str) -> None:
        self.ticker = ticker
        super().__init__(message)


class NoPriceAvailable(DataUnavailable):
    """No reference price for the underlying could be discovered."""

    def __init__(self, ticker: str) -> None:
        super().__init__(ticker, f"No price for {ticker}.")
