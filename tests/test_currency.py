from zentra.currency import format_price, from_smallest_unit, get_currency_symbol, to_smallest_unit


def test_format_price_uses_currency_symbol():
    assert format_price(12.5, "gbp") == "£12.50"
    assert format_price(1200, "usd") == "$1,200.00"
    assert format_price(9.99, "EUR") == "€9.99"


def test_format_price_zero_decimal_currency():
    assert format_price(1500, "jpy") == "¥1,500"


def test_unknown_currency_falls_back_to_code():
    assert get_currency_symbol("pln") == "PLN "
    assert format_price(10, "pln") == "PLN 10.00"


def test_smallest_unit_conversion():
    assert to_smallest_unit(85.0, "gbp") == 8500
    assert to_smallest_unit(19.99, "usd") == 1999
    assert to_smallest_unit(1500, "jpy") == 1500
    assert from_smallest_unit(8500, "gbp") == 85.0
    assert from_smallest_unit(1500, "jpy") == 1500.0
