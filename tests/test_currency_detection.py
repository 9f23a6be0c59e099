import json
import sys
from decimal import Decimal
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config import COMMON_CURRENCY_CODES  # noqa: E402
from currency_module import (  # noqa: E402
    AmountWithCurrency,
    BUILTIN_CURRENCIES,
    CurrencyDetector,
    CurrencyRegistry,
    CurrencyTableError,
    keyword_pattern,
    load_currency_table,
    make_currency,
)


@pytest.fixture
def detector():
    return CurrencyDetector(CurrencyRegistry.builtin())


@pytest.mark.parametrize(
    "text, expected",
    [
        ("$20 for lunch", "USD"),
        ("€15 on coffee", "EUR"),
        ("£10 for the taxi", "GBP"),
        ("₹500 on groceries", "INR"),
        ("100 د.إ at Lulu", "AED"),
        ("CA$ 40 for parking", "CAD"),
        ("A$30 on dinner", "AUD"),
        ("¥1200 for sushi", "JPY"),
        ("Rs. 250 for tea", "INR"),
        ("spent 50 AED on fuel", "AED"),
        ("spent 25 SAR on lunch", "SAR"),
    ],
)
def test_symbol_and_code_next_to_number(detector, text, expected):
    assert detector.detect_currency(text, "EUR" if expected != "EUR" else "USD") == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("two thousand dirhams on groceries", "AED"),
        ("twenty bucks for the movie", "USD"),
        ("ten quid at the pub", "GBP"),
        ("one lakh rupees on furniture", "INR"),
        ("fifty riyals for lunch", "SAR"),
        ("three thousand yen for a ticket", "JPY"),
        ("a hundred yuan on souvenirs", "CNY"),
        ("forty loonies for hockey tickets", "CAD"),
        ("twenty swiss francs for coffee", "CHF"),
        ("two hundred kronor at the market", "SEK"),
        ("three hundred kroner for dinner", "NOK"),
        ("five dinars for a taxi", "KWD"),
    ],
)
def test_spoken_currency_names(detector, text, expected):
    assert detector.detect_currency(text, "EUR") == expected


def test_longest_keyword_wins(detector):
    assert detector.detect_currency("fifty canadian dollars for gas", "EUR") == "CAD"
    assert detector.detect_currency("fifty australian dollars", "EUR") == "AUD"
    assert detector.detect_currency("fifty dollars", "EUR") == "USD"


def test_word_keyword_needs_word_boundaries(detector):
    # "rs" inside "hours" is not a rupee mention
    assert detector.detect_currency("worked two hours overtime", "GBP") == "GBP"
    assert keyword_pattern("rs").search("hours") is None
    assert keyword_pattern("rs").search("500 rs") is not None


def test_no_signal_uses_default(detector):
    assert detector.detect_currency("lunch with friends", "AED") == "AED"
    assert detector.detect_currency("", "INR") == "INR"
    assert detector.detect_currency("   ", "GBP") == "GBP"


def test_unknown_default_falls_back(detector):
    assert detector.detect_currency("lunch", "XYZ") == "USD"
    assert detector.resolve_default(None) == "USD"


def test_default_accepts_definition(detector):
    euro = detector.registry.from_code("EUR")
    assert detector.detect_currency("lunch", euro) == "EUR"


def test_detection_is_case_insensitive(detector):
    assert detector.detect_currency("TWO THOUSAND DIRHAMS", "USD") == "AED"
    assert detector.detect_currency("SPENT 1000 DIRHAMS", "USD") == "AED"
    assert detector.detect_currency("RS 400 FOR TEA", "USD") == "INR"


def test_extract_amount_and_currency_from_symbol(detector):
    result = detector.extract_amount_and_currency("Rs. 1,200 at the market", "USD")
    assert result == AmountWithCurrency(Decimal("1200"), "INR")


def test_extract_amount_and_currency_from_adjacent_word(detector):
    result = detector.extract_amount_and_currency("spent 1000 dirhams for Android phone", "USD")
    assert result == AmountWithCurrency(Decimal("1000"), "AED")


def test_extract_amount_and_currency_bare_number_uses_default(detector):
    result = detector.extract_amount_and_currency("Spent 45 at the store", "EUR")
    assert result == AmountWithCurrency(Decimal("45"), "EUR")


def test_extract_amount_and_currency_without_number(detector):
    assert detector.extract_amount_and_currency("twenty dollars", "USD") is None
    assert detector.extract_amount_and_currency("", "USD") is None


def test_contains_currency(detector):
    assert detector.contains_currency("twenty bucks")
    assert detector.contains_currency("paid in €")
    assert not detector.contains_currency("lunch with friends")


def test_normalize_currency_symbols(detector):
    assert detector.normalize_currency_symbols("₹500 and €20") == "INR500 and EUR20"
    assert detector.normalize_currency_symbols("CA$15") == "CAD15"
    assert detector.normalize_currency_symbols("") == ""


def test_registry_lookup_and_order():
    registry = CurrencyRegistry.builtin()
    assert registry.codes()[:6] == ("AED", "USD", "EUR", "GBP", "INR", "SAR")
    assert tuple(d.code for d in registry.common()) == COMMON_CURRENCY_CODES
    assert registry.from_code("aed").display_name == "UAE Dirham"
    assert registry.from_code("jpy").decimal_places == 0
    assert registry.from_code("KWD").decimal_places == 3
    assert registry.from_code("XYZ") is None
    assert registry.lookup_keyword("Rs.").code == "INR"
    assert registry.lookup_keyword("Quid").code == "GBP"
    assert "usd" in registry
    assert len(registry) == len(BUILTIN_CURRENCIES)


def test_make_currency_includes_code_symbol_and_name():
    definition = make_currency("usd", "$", "US Dollar", ("Bucks",))
    assert definition.code == "USD"
    assert {"usd", "$", "us dollar", "bucks"} <= definition.keywords
    assert definition.short_name == "Dollar"
    assert str(definition) == "$ USD"


@pytest.mark.parametrize(
    "region, expected",
    [("AE", "AED"), ("en_IN", "INR"), ("en-GB", "GBP"), ("de_DE", "EUR"), ("ZZ", "USD"), (None, "USD")],
)
def test_default_currency_for_region(region, expected):
    assert CurrencyRegistry.builtin().default_currency_for_region(region) == expected


def test_duplicate_codes_are_rejected():
    usd = make_currency("USD", "$", "US Dollar")
    with pytest.raises(CurrencyTableError):
        CurrencyRegistry([usd, usd])


def test_empty_table_is_rejected():
    with pytest.raises(CurrencyTableError):
        CurrencyRegistry([])


def _write_table(tmp_path, payload):
    path = tmp_path / "currencies.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return str(path)


def test_load_currency_table(tmp_path):
    path = _write_table(
        tmp_path,
        {
            "version": "1.0",
            "currencies": [
                {
                    "code": "AED",
                    "symbol": "د.إ",
                    "displayName": "UAE Dirham",
                    "voiceKeywords": ["dirham", "dirhams"],
                    "isRTL": True,
                    "localeIdentifier": "ar_AE",
                },
                {
                    "code": "USD",
                    "symbol": "$",
                    "displayName": "US Dollar",
                    "voiceKeywords": ["dollar", "dollars", "bucks"],
                },
            ],
        },
    )
    registry = load_currency_table(path)
    assert registry.codes() == ("AED", "USD")
    aed = registry.from_code("AED")
    assert aed.is_right_to_left
    assert aed.locale_identifier == "ar_AE"
    assert "aed" in aed.keywords
    assert CurrencyDetector(registry).detect_currency("ten bucks", "AED") == "USD"


def test_load_currency_table_bad_json(tmp_path):
    path = tmp_path / "currencies.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CurrencyTableError):
        load_currency_table(str(path))


def test_load_currency_table_bad_layout(tmp_path):
    path = _write_table(tmp_path, {"version": "1.0", "items": []})
    with pytest.raises(ValueError):
        load_currency_table(path)


def test_load_currency_table_duplicate_codes(tmp_path):
    entry = {"code": "USD", "symbol": "$", "displayName": "US Dollar"}
    path = _write_table(tmp_path, {"currencies": [entry, entry]})
    with pytest.raises(CurrencyTableError):
        load_currency_table(path)
