from __future__ import annotations

import json
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Pattern, Sequence, Tuple, Union

from config import COMMON_CURRENCY_CODES, DEFAULT_CURRENCY
from logger import log_debug, log_info, log_warning


class CurrencyTableError(ValueError):
    """Raised when a currency table cannot be turned into definitions."""


@dataclass(frozen=True)
class CurrencyDefinition:
    code: str
    symbol: str
    display_name: str
    keywords: frozenset
    decimal_places: int = 2
    is_right_to_left: bool = False
    short_name: str = ""
    locale_identifier: str = "en_US"

    def __str__(self) -> str:
        return f"{self.symbol} {self.code}"


def make_currency(
    code: str,
    symbol: str,
    display_name: str,
    keywords: Iterable[str] = (),
    *,
    decimal_places: int = 2,
    is_right_to_left: bool = False,
    short_name: str = "",
    locale_identifier: str = "en_US",
) -> CurrencyDefinition:
    """Build a definition whose keywords always cover code, symbol and name."""
    code = code.strip().upper()
    terms = {code, symbol, display_name, *keywords}
    return CurrencyDefinition(
        code=code,
        symbol=symbol,
        display_name=display_name,
        keywords=frozenset(term.strip().lower() for term in terms if term and term.strip()),
        decimal_places=decimal_places,
        is_right_to_left=is_right_to_left,
        short_name=short_name or display_name.split()[-1],
        locale_identifier=locale_identifier,
    )


# Table order breaks keyword ties, so the common currencies come first.
BUILTIN_CURRENCIES: Tuple[CurrencyDefinition, ...] = (
    make_currency(
        "AED", "د.إ", "UAE Dirham",
        ("dirham", "dirhams", "dhs", "emirati dirham", "emirati dirhams"),
        is_right_to_left=True, short_name="Dirham", locale_identifier="ar_AE",
    ),
    make_currency(
        "USD", "$", "US Dollar",
        ("dollar", "dollars", "buck", "bucks", "us dollars", "american dollar", "american dollars"),
        short_name="Dollar", locale_identifier="en_US",
    ),
    make_currency(
        "EUR", "€", "Euro", ("euro", "euros"),
        short_name="Euro", locale_identifier="de_DE",
    ),
    make_currency(
        "GBP", "£", "British Pound",
        ("pound", "pounds", "quid", "sterling", "pound sterling", "british pounds"),
        short_name="Pound", locale_identifier="en_GB",
    ),
    make_currency(
        "INR", "₹", "Indian Rupee",
        ("rupee", "rupees", "rs", "rs.", "₨", "indian rupees"),
        short_name="Rupee", locale_identifier="en_IN",
    ),
    make_currency(
        "SAR", "﷼", "Saudi Riyal",
        ("riyal", "riyals", "saudi riyals"),
        is_right_to_left=True, short_name="Riyal", locale_identifier="ar_SA",
    ),
    make_currency(
        "JPY", "¥", "Japanese Yen", ("yen",),
        decimal_places=0, short_name="Yen", locale_identifier="ja_JP",
    ),
    make_currency(
        "CNY", "CN¥", "Chinese Yuan", ("yuan", "renminbi", "rmb"),
        short_name="Yuan", locale_identifier="zh_CN",
    ),
    make_currency(
        "CAD", "CA$", "Canadian Dollar",
        ("c$", "canadian dollars", "loonie", "loonies"),
        short_name="Dollar", locale_identifier="en_CA",
    ),
    make_currency(
        "AUD", "A$", "Australian Dollar",
        ("au$", "australian dollars", "aussie dollar", "aussie dollars"),
        short_name="Dollar", locale_identifier="en_AU",
    ),
    make_currency(
        "CHF", "CHF", "Swiss Franc", ("franc", "francs", "swiss francs"),
        short_name="Franc", locale_identifier="de_CH",
    ),
    make_currency(
        "SGD", "S$", "Singapore Dollar", ("singapore dollars",),
        short_name="Dollar", locale_identifier="en_SG",
    ),
    make_currency(
        "HKD", "HK$", "Hong Kong Dollar", ("hong kong dollars",),
        short_name="Dollar", locale_identifier="zh_HK",
    ),
    make_currency(
        "NZD", "NZ$", "New Zealand Dollar",
        ("new zealand dollars", "kiwi dollar", "kiwi dollars"),
        short_name="Dollar", locale_identifier="en_NZ",
    ),
    make_currency(
        "SEK", "kr", "Swedish Krona", ("krona", "kronor", "swedish kronor"),
        short_name="Krona", locale_identifier="sv_SE",
    ),
    make_currency(
        "NOK", "kr", "Norwegian Krone", ("krone", "kroner", "norwegian kroner"),
        short_name="Krone", locale_identifier="nb_NO",
    ),
    make_currency(
        "DKK", "kr.", "Danish Krone", ("danish kroner",),
        short_name="Krone", locale_identifier="da_DK",
    ),
    make_currency(
        "KWD", "د.ك", "Kuwaiti Dinar", ("dinar", "dinars", "kuwaiti dinars"),
        decimal_places=3, is_right_to_left=True, short_name="Dinar", locale_identifier="ar_KW",
    ),
    make_currency(
        "QAR", "ر.ق", "Qatari Riyal", ("qatari riyals",),
        is_right_to_left=True, short_name="Riyal", locale_identifier="ar_QA",
    ),
    make_currency(
        "OMR", "ر.ع.", "Omani Rial", ("rial", "rials", "omani rials"),
        decimal_places=3, is_right_to_left=True, short_name="Rial", locale_identifier="ar_OM",
    ),
    make_currency(
        "BHD", ".د.ب", "Bahraini Dinar", ("bahraini dinars",),
        decimal_places=3, is_right_to_left=True, short_name="Dinar", locale_identifier="ar_BH",
    ),
)

_REGION_CURRENCIES: Dict[str, str] = {
    "AE": "AED", "US": "USD", "GB": "GBP", "IN": "INR", "SA": "SAR",
    "DE": "EUR", "FR": "EUR", "ES": "EUR", "IT": "EUR", "NL": "EUR", "IE": "EUR",
    "BE": "EUR", "AT": "EUR", "PT": "EUR", "FI": "EUR", "GR": "EUR",
    "JP": "JPY", "CN": "CNY", "CA": "CAD", "AU": "AUD", "CH": "CHF",
    "SG": "SGD", "HK": "HKD", "NZ": "NZD", "SE": "SEK", "NO": "NOK",
    "DK": "DKK", "KW": "KWD", "QA": "QAR", "OM": "OMR", "BH": "BHD",
}


def _is_symbolic(keyword: str) -> bool:
    return re.search(r"[a-z]", keyword) is None


def keyword_pattern(keyword: str) -> Pattern[str]:
    """Symbols match anywhere; words only where they are not glued to other
    word characters ("rs" must not fire inside "hours")."""
    keyword = keyword.lower()
    if _is_symbolic(keyword):
        return re.compile(re.escape(keyword))
    prefix = r"(?<!\w)" if keyword[0].isalnum() else ""
    suffix = r"(?!\w)" if keyword[-1].isalnum() else ""
    return re.compile(prefix + re.escape(keyword) + suffix)


class CurrencyRegistry:
    """Read-only view over an ordered currency table."""

    def __init__(self, definitions: Iterable[CurrencyDefinition]):
        ordered = tuple(definitions)
        by_code: Dict[str, CurrencyDefinition] = {}
        for definition in ordered:
            if definition.code in by_code:
                raise CurrencyTableError(f"Duplicate currency code {definition.code}")
            by_code[definition.code] = definition
        if not ordered:
            raise CurrencyTableError("Currency table is empty")

        keyword_index: Dict[str, CurrencyDefinition] = {}
        matchers: List[Tuple[str, int, CurrencyDefinition, Pattern[str]]] = []
        for position, definition in enumerate(ordered):
            for keyword in sorted(definition.keywords):
                keyword_index.setdefault(keyword, definition)
                matchers.append((keyword, position, definition, keyword_pattern(keyword)))

        self._definitions = ordered
        self._by_code = MappingProxyType(by_code)
        self._keyword_index = MappingProxyType(keyword_index)
        self._matchers = tuple(matchers)

    @classmethod
    def builtin(cls) -> "CurrencyRegistry":
        return cls(BUILTIN_CURRENCIES)

    def __iter__(self) -> Iterator[CurrencyDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip().upper() in self._by_code

    @property
    def definitions(self) -> Tuple[CurrencyDefinition, ...]:
        return self._definitions

    def codes(self) -> Tuple[str, ...]:
        return tuple(definition.code for definition in self._definitions)

    def common(self) -> Tuple[CurrencyDefinition, ...]:
        return tuple(d for d in self._definitions if d.code in COMMON_CURRENCY_CODES)

    def from_code(self, code: Optional[str]) -> Optional[CurrencyDefinition]:
        if not code:
            return None
        return self._by_code.get(code.strip().upper())

    def lookup_keyword(self, token: str) -> Optional[CurrencyDefinition]:
        if not token:
            return None
        token = token.strip().lower()
        return self._keyword_index.get(token) or self._keyword_index.get(token.rstrip("."))

    def detect_from_text(self, text: str) -> Optional[CurrencyDefinition]:
        """Longest matching keyword wins; equal lengths go to the earlier row."""
        if not text:
            return None
        lowered = text.lower()
        best: Optional[Tuple[int, int, CurrencyDefinition]] = None
        for keyword, position, definition, pattern in self._matchers:
            if not pattern.search(lowered):
                continue
            rank = (len(keyword), -position)
            if best is None or rank > best[:2]:
                best = (rank[0], rank[1], definition)
        return best[2] if best else None

    def default_currency_for_region(self, region: Optional[str]) -> str:
        """Map a region or locale identifier ("AE", "en_IN", "en-GB")."""
        if region:
            country = re.split(r"[_-]", region.strip())[-1].upper()
            code = _REGION_CURRENCIES.get(country)
            if code and code in self:
                return code
        return self.fallback_code()

    def fallback_code(self) -> str:
        if DEFAULT_CURRENCY in self:
            return DEFAULT_CURRENCY.upper()
        return self._definitions[0].code


def _definition_from_json(entry: Dict[str, Any]) -> CurrencyDefinition:
    return make_currency(
        entry["code"],
        entry["symbol"],
        entry["displayName"],
        entry.get("voiceKeywords", ()),
        decimal_places=int(entry.get("decimalPlaces", 2)),
        is_right_to_left=bool(entry.get("isRTL", False)),
        short_name=entry.get("shortName", ""),
        locale_identifier=entry.get("localeIdentifier", "en_US"),
    )


def load_currency_table(path: str) -> CurrencyRegistry:
    """Load a ``currencies.json`` file ({"version", "currencies": [...]})."""
    with open(path, "r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise CurrencyTableError(f"Currency file {path} is not valid JSON: {exc}") from exc
    try:
        entries = payload["currencies"]
        definitions = [_definition_from_json(entry) for entry in entries]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CurrencyTableError(f"Currency file {path} has an unexpected layout: {exc}") from exc
    registry = CurrencyRegistry(definitions)
    log_info(
        "Loaded %d currencies from %s (version %s)",
        len(registry),
        path,
        payload.get("version", "unknown"),
    )
    return registry


_AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"

# Ordered: the multi-character dollar signs must be tried before "$".
SYMBOL_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"₹\s*" + _AMOUNT), "INR"),
    (re.compile(r"₨\s*" + _AMOUNT), "INR"),
    (re.compile(r"(?<![A-Za-z])[Rr][Ss]\.?\s*" + _AMOUNT), "INR"),
    (re.compile(r"(?<![A-Za-z])(?:CA|C)\$\s*" + _AMOUNT, re.IGNORECASE), "CAD"),
    (re.compile(r"(?<![A-Za-z])(?:AU|A)\$\s*" + _AMOUNT, re.IGNORECASE), "AUD"),
    (re.compile(r"\$\s*" + _AMOUNT), "USD"),
    (re.compile(r"€\s*" + _AMOUNT), "EUR"),
    (re.compile(r"£\s*" + _AMOUNT), "GBP"),
    (re.compile(r"(?<![A-Za-z])CN¥\s*" + _AMOUNT, re.IGNORECASE), "CNY"),
    (re.compile(r"¥\s*" + _AMOUNT), "JPY"),
    (re.compile(r"د\.إ\s*" + _AMOUNT), "AED"),
    (re.compile(r"﷼\s*" + _AMOUNT), "SAR"),
    (re.compile(_AMOUNT + r"\s*₹"), "INR"),
    (re.compile(_AMOUNT + r"\s*₨"), "INR"),
    (re.compile(_AMOUNT + r"\s*[Rr][Ss](?![A-Za-z])"), "INR"),
    (re.compile(_AMOUNT + r"\s*\$"), "USD"),
    (re.compile(_AMOUNT + r"\s*€"), "EUR"),
    (re.compile(_AMOUNT + r"\s*£"), "GBP"),
    (re.compile(_AMOUNT + r"\s*¥"), "JPY"),
    (re.compile(_AMOUNT + r"\s*د\.إ"), "AED"),
    (re.compile(_AMOUNT + r"\s*﷼"), "SAR"),
)

_TOKEN = r"([A-Za-z$€£₹₨¥﷼\u0600-\u06FF.]+)"
_NUMBER_THEN_TOKEN = re.compile(_AMOUNT + r"\s*" + _TOKEN)
_TOKEN_THEN_NUMBER = re.compile(_TOKEN + r"\s*" + _AMOUNT)
_BARE_AMOUNT = re.compile(_AMOUNT)


def _to_decimal(text: str) -> Optional[Decimal]:
    try:
        return Decimal(text.replace(",", ""))
    except InvalidOperation:
        return None


@dataclass(frozen=True)
class AmountWithCurrency:
    amount: Decimal
    currency: str


CurrencyLike = Union[str, CurrencyDefinition, None]


class CurrencyDetector:
    """Resolves an ISO code for a transcript.

    Order: symbol-anchored patterns, a keyword sitting next to a number,
    any keyword anywhere in the text, then the caller's default.
    """

    def __init__(self, registry: Optional[CurrencyRegistry] = None):
        self.registry = registry if registry is not None else CurrencyRegistry.builtin()

    def resolve_default(self, default: CurrencyLike) -> str:
        code = getattr(default, "code", default)
        if isinstance(code, str) and code.strip().upper() in self.registry:
            return code.strip().upper()
        fallback = self.registry.fallback_code()
        if code:
            log_warning("Unknown default currency %r, using %s", code, fallback)
        return fallback

    def _symbol_match(self, text: str) -> Optional[AmountWithCurrency]:
        for pattern, code in SYMBOL_PATTERNS:
            if code not in self.registry:
                continue
            match = pattern.search(text)
            if match is None:
                continue
            amount = _to_decimal(match.group(1))
            if amount is not None:
                return AmountWithCurrency(amount, code)
        return None

    def _adjacent_matches(self, text: str) -> Iterator[Tuple[str, str]]:
        for match in _NUMBER_THEN_TOKEN.finditer(text):
            yield match.group(1), match.group(2)
        for match in _TOKEN_THEN_NUMBER.finditer(text):
            yield match.group(2), match.group(1)

    def _adjacent_match(self, text: str) -> Optional[AmountWithCurrency]:
        for amount_text, token in self._adjacent_matches(text):
            definition = self.registry.lookup_keyword(token)
            if definition is None:
                continue
            amount = _to_decimal(amount_text)
            if amount is not None:
                return AmountWithCurrency(amount, definition.code)
        return None

    def detect_currency(self, text: str, default: CurrencyLike = DEFAULT_CURRENCY) -> str:
        if not text or not text.strip():
            return self.resolve_default(default)

        symbol_hit = self._symbol_match(text)
        if symbol_hit is not None:
            return symbol_hit.currency

        adjacent_hit = self._adjacent_match(text)
        if adjacent_hit is not None:
            return adjacent_hit.currency

        definition = self.registry.detect_from_text(text)
        if definition is not None:
            return definition.code

        log_debug("No currency signal in %r, falling back to default", text)
        return self.resolve_default(default)

    def extract_amount_and_currency(
        self, text: str, default: CurrencyLike = DEFAULT_CURRENCY
    ) -> Optional[AmountWithCurrency]:
        """Return the first number together with its currency.

        "د.إ 100" gives (100, AED) from a single pattern; a bare number is
        paired with whatever :meth:`detect_currency` finds in the text.
        """
        if not text:
            return None

        hit = self._symbol_match(text) or self._adjacent_match(text)
        if hit is not None:
            return hit

        match = _BARE_AMOUNT.search(text)
        if match is None:
            return None
        amount = _to_decimal(match.group(1))
        if amount is None:
            return None
        return AmountWithCurrency(amount, self.detect_currency(text, default))

    def contains_currency(self, text: str) -> bool:
        return self.registry.detect_from_text(text) is not None

    def normalize_currency_symbols(self, text: str) -> str:
        """Replace currency symbols with ISO codes ("₹500" -> "INR500")."""
        if not text:
            return text
        normalized = text
        by_length: Sequence[CurrencyDefinition] = sorted(
            self.registry, key=lambda definition: len(definition.symbol), reverse=True
        )
        for definition in by_length:
            if definition.symbol.upper() == definition.code:
                continue
            pattern = re.compile(keyword_pattern(definition.symbol).pattern, re.IGNORECASE)
            normalized = pattern.sub(definition.code, normalized)
        return normalized
