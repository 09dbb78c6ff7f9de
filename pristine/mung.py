"""Placeholder ("mung symbol") providers used when rendering SQL templates for a driver."""

from abc import ABC, abstractmethod


class MungSymbolProvider(ABC):
    """Abstract base for producing the placeholder of each bound parameter."""

    @abstractmethod
    def __call__(self) -> str:
        """Return the placeholder for the next bound parameter.

        :returns: the placeholder string
        """
        pass  # pragma: no cover

    def fresh(self) -> "MungSymbolProvider":
        """Return a provider in its initial state, ready to render a new statement."""
        return self


class StaticMungSymbolProvider(MungSymbolProvider):
    """Provides the same placeholder for every parameter, e.g. ``?`` or ``%s``."""

    def __init__(self, symbol: str):
        """Construct a static provider.

        :param symbol: the placeholder returned on every call
        """
        self._symbol = symbol

    def __call__(self) -> str:  # noqa: D102
        return self._symbol


class NumberedMungSymbolProvider(MungSymbolProvider):
    """Provides numbered placeholders (``:1``, ``:2`` ...) that increment on each call."""

    def __init__(self, start: int = 1, prefix: str = ":"):
        """Construct a numbered provider.

        :param start: the first number handed out, defaults to 1
        :param prefix: the prefix before the number, defaults to ":"
        """
        self._start = start
        self._counter = start
        self._prefix = prefix

    def __call__(self) -> str:  # noqa: D102
        symbol = f"{self._prefix}{self._counter}"
        self._counter += 1
        return symbol

    def fresh(self) -> "NumberedMungSymbolProvider":  # noqa: D102
        return NumberedMungSymbolProvider(self._start, self._prefix)
