from decimal import Decimal

from number_module import AmountSource, extract_numeric_amount, normalize_text, parse_amount
from voice_module import parse_expense


def test_parse_plain_four_digit_amount():
    info = parse_expense("Add 5000 to food")
    assert info.amount == Decimal("5000")
    assert info.amount_source is AmountSource.EXPLICIT_DIGIT
    assert info.category == "Food & Dining"


def test_parse_comma_grouped_thousands():
    info = parse_expense("Paid 12,500 for the new laptop")
    # the grouped form wins over the bare "12"
    assert info.amount == Decimal("12500")
    assert info.category == "Shopping"


def test_parse_currency_prefix_rupee():
    info = parse_expense("Add ₹10,000 to transport")
    assert info.amount == Decimal("10000")
    assert info.currency == "INR"
    assert info.category == "Transportation"


def test_parse_currency_suffix_rs():
    info = parse_expense("Add 1200 rs to entertainment")
    assert info.amount == Decimal("1200")
    assert info.currency == "INR"
    assert info.category == "Entertainment"


def test_four_digit_amount_is_not_truncated():
    info = parse_expense("I just spent 1000 dirhams for Android phone")
    assert info.amount == Decimal("1000")
    assert info.currency == "AED"


def test_decimal_amount_keeps_cents():
    assert parse_amount("paid 1,250.75 euros").value == Decimal("1250.75")
    assert parse_amount("12.99 for lunch").value == Decimal("12.99")


def test_digits_win_over_number_words():
    parsed = parse_amount("twenty five, no wait, 30 dollars")
    assert parsed.value == Decimal("30")
    assert parsed.source is AmountSource.EXPLICIT_DIGIT


def test_sign_word_before_digits_gives_negative_value():
    assert extract_numeric_amount("minus 20").value == Decimal("-20")


def test_no_digits_returns_none():
    assert extract_numeric_amount("twenty dollars") is None
    assert extract_numeric_amount("") is None


def test_normalize_strips_fillers_and_currency_names():
    assert normalize_text("I just spent twenty-five Dollars") == "i twenty five"
    assert normalize_text("") == ""
