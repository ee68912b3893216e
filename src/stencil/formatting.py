"""Locale-aware output formatting for templates.

Numbers printed by ``{{ ... }}`` go through a fixed decimal pattern (``####``
by default: no grouping, no fraction digits) in the locale of the current
render call. Filters expose the rest of Babel's formatters to templates.

The render locale travels in the template context under ``LOCALE_KEY``.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from babel import Locale
from babel.dates import format_date, format_datetime
from babel.numbers import format_currency, format_decimal
from jinja2 import pass_context
from jinja2.runtime import Context

LOCALE_KEY = "__locale__"
DEFAULT_LOCALE = Locale("fr", "FR")
DEFAULT_NUMBER_FORMAT = "####"


def is_number(value: Any) -> bool:
    """Return True for values the number pattern applies to (bools excluded)."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def context_locale(context: Context) -> Locale:
    """Return the locale of the render call that owns ``context``."""
    locale = context.get(LOCALE_KEY)
    if locale is None:
        return DEFAULT_LOCALE
    if isinstance(locale, Locale):
        return locale
    return Locale.parse(locale)


def make_finalize(number_format: str = DEFAULT_NUMBER_FORMAT) -> Callable[..., Any]:
    """Build a Jinja2 ``finalize`` hook applying ``number_format`` to numbers.

    Args:
        number_format: Babel/LDML decimal pattern

    Returns:
        Context-aware finalize callable
    """

    @pass_context
    def finalize(context: Context, value: Any) -> Any:
        if is_number(value):
            return format_decimal(value, format=number_format, locale=context_locale(context))
        return value

    return finalize


@pass_context
def number_filter(context: Context, value: Any, pattern: str | None = None) -> str:
    """Format a number with ``pattern``, or the locale's standard pattern."""
    return format_decimal(value, format=pattern, locale=context_locale(context))


@pass_context
def currency_filter(context: Context, value: Any, currency: str) -> str:
    return format_currency(value, currency, locale=context_locale(context))


def _coerce_datetime(value: datetime | date | str) -> datetime | date:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


@pass_context
def date_filter(context: Context, value: datetime | date | str | None, format: str = "medium") -> str:
    """Format the date part of ``value`` in the render locale.

    ``value`` may be a date, a datetime or an ISO 8601 string; None renders empty.
    """
    if value is None:
        return ""
    return format_date(_coerce_datetime(value), format=format, locale=context_locale(context))


@pass_context
def datetime_filter(context: Context, value: datetime | str | None, format: str = "medium") -> str:
    """Format a datetime in the render locale.

    Naive datetimes are taken as UTC.
    """
    if value is None:
        return ""
    return format_datetime(_coerce_datetime(value), format=format, locale=context_locale(context))


FILTERS: dict[str, Callable[..., Any]] = {
    "number": number_filter,
    "currency": currency_filter,
    "date": date_filter,
    "datetime": datetime_filter,
}
