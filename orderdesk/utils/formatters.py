"""
Display formatting for amounts, quantities and percentages.

Output of these helpers is for people to read. Nothing returned here is
parsed back or used in further calculations.
"""
import logging
from collections import namedtuple
from decimal import Decimal
from typing import Optional, Union

from orderdesk.utils.money import quantize_money, to_decimal
from orderdesk.exceptions import InvalidAmount

logger = logging.getLogger(__name__)

LocaleFormat = namedtuple(
    'LocaleFormat',
    ['currency', 'symbol', 'decimals', 'group_sep', 'decimal_sep', 'pattern'],
)

NBSP = '\u00a0'

LOCALES = {
    'vi-VN': LocaleFormat('VND', '₫', 0, '.', ',', '{number}' + NBSP + '{symbol}'),
    'en-US': LocaleFormat('USD', '$', 2, ',', '.', '{symbol}{number}'),
    'es-AR': LocaleFormat('ARS', '$', 2, '.', ',', '{symbol}' + NBSP + '{number}'),
}

CURRENCY_SYMBOLS = {
    'VND': ('₫', 0),
    'USD': ('$', 2),
    'ARS': ('$', 2),
    'EUR': ('€', 2),
}

DEFAULT_LOCALE = 'vi-VN'


def get_locale_format(locale: Optional[str]) -> LocaleFormat:
    """
    Resolve a locale tag to its format.

    Unknown tags fall back to another locale with the same language, then to
    the default locale.
    """
    if locale in LOCALES:
        return LOCALES[locale]

    if locale:
        language = locale.replace('_', '-').split('-')[0].lower()
        for tag, fmt in LOCALES.items():
            if tag.split('-')[0] == language:
                return fmt
        logger.debug(f"Unknown locale {locale!r}, using {DEFAULT_LOCALE}")

    return LOCALES[DEFAULT_LOCALE]


def _group_digits(integer_part: str, group_sep: str) -> str:
    # Reverse, group by 3, reverse again
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return group_sep.join(groups)[::-1]


def _render(num: Decimal, decimals: Optional[int], group_sep: str, decimal_sep: str):
    """Return (sign, formatted digits) for a Decimal."""
    if decimals is not None:
        num = quantize_money(num, decimals)

    sign = '-' if num < 0 else ''
    num_str = format(abs(num), 'f')

    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        if decimals is None:
            # Drop non significant trailing zeros
            decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ''

    formatted = _group_digits(integer_part, group_sep)
    if decimal_part:
        formatted = f"{formatted}{decimal_sep}{decimal_part}"
    return sign, formatted


def format_currency(
    amount: Union[Decimal, int, str, None],
    locale: str = DEFAULT_LOCALE,
    currency: Optional[str] = None,
) -> str:
    """
    Format an amount as a localized currency string.

    Args:
        amount: Amount to format
        locale: Locale tag ('vi-VN', 'en-US', 'es-AR')
        currency: ISO code overriding the locale's currency symbol and decimals

    Returns:
        Formatted string, or "-" when the amount is missing or invalid

    Examples:
        format_currency(Decimal('189000')) -> "189.000 ₫"
        format_currency(Decimal('1234.5'), 'en-US') -> "$1,234.50"
    """
    try:
        num = to_decimal(amount)
    except InvalidAmount:
        return '-'

    fmt = get_locale_format(locale)
    symbol, decimals = fmt.symbol, fmt.decimals
    if currency and currency.upper() != fmt.currency:
        symbol, decimals = CURRENCY_SYMBOLS.get(currency.upper(), (currency.upper(), 2))

    sign, number = _render(num, decimals, fmt.group_sep, fmt.decimal_sep)
    return sign + fmt.pattern.format(number=number, symbol=symbol)


def format_number(value: Union[Decimal, int, str, None], locale: str = DEFAULT_LOCALE) -> str:
    """
    Format a quantity with the locale's separators.

    Only significant decimals are shown:
        format_number(Decimal('1500')) -> "1.500"
        format_number(Decimal('2.50')) -> "2,5"
    """
    try:
        num = to_decimal(value)
    except InvalidAmount:
        return '-'

    fmt = get_locale_format(locale)
    sign, number = _render(num, None, fmt.group_sep, fmt.decimal_sep)
    return sign + number


def format_percent(value: Union[Decimal, int, str, None]) -> str:
    """format_percent(Decimal('10.00')) -> "10%" """
    try:
        num = to_decimal(value)
    except InvalidAmount:
        return '-'
    return f"{format(num.normalize(), 'f')}%"
