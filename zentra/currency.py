"""
Currency helpers shared by payments, vouchers and email templates.
"""

CURRENCY_SYMBOLS = {
    "usd": "$",
    "gbp": "£",
    "eur": "€",
    "cad": "CA$",
    "aud": "A$",
    "jpy": "¥",
    "chf": "CHF ",
    "sek": "kr",
    "nok": "kr",
    "dkk": "kr",
    "nzd": "NZ$",
    "inr": "₹",
    "zar": "R",
}

# Stripe charges these in whole units
ZERO_DECIMAL_CURRENCIES = {"jpy", "krw", "vnd", "clp"}


def get_currency_symbol(currency: str) -> str:
    code = (currency or "usd").lower()
    return CURRENCY_SYMBOLS.get(code, f"{code.upper()} ")


def format_price(amount: float, currency: str = "usd") -> str:
    """Format an amount for display, e.g. 12.5 gbp -> "£12.50" """
    code = (currency or "usd").lower()
    symbol = get_currency_symbol(code)
    if code in ZERO_DECIMAL_CURRENCIES:
        return f"{symbol}{round(amount or 0):,}"
    return f"{symbol}{(amount or 0):,.2f}"


def to_smallest_unit(amount: float, currency: str = "usd") -> int:
    """Convert a major-unit amount to the integer amount payment APIs expect"""
    if (currency or "usd").lower() in ZERO_DECIMAL_CURRENCIES:
        return int(round(amount))
    return int(round(amount * 100))


def from_smallest_unit(amount: int, currency: str = "usd") -> float:
    if (currency or "usd").lower() in ZERO_DECIMAL_CURRENCIES:
        return float(amount)
    return amount / 100
