from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Iterator, List, Optional

from config import FILLER_WORDS


class AmountSource(str, Enum):
    EXPLICIT_DIGIT = "explicit-digit"
    WORD_DERIVED = "word-derived"


@dataclass(frozen=True)
class ParsedAmount:
    value: Decimal
    source: AmountSource

    @property
    def is_explicit(self) -> bool:
        return self.source is AmountSource.EXPLICIT_DIGIT


class TokenKind(str, Enum):
    BASIC = "basic"
    TENS = "tens"
    HUNDRED = "hundred"
    SCALE = "scale"
    POINT = "point"
    SUBUNIT = "subunit"
    CONNECTOR = "connector"
    SIGN = "sign"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class NumberToken:
    word: str
    kind: TokenKind
    value: Decimal = Decimal(0)


_BASIC_NUMBERS: Dict[str, int] = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
    # "a hundred" == "one hundred"
    "a": 1, "an": 1,
}

_TENS_NUMBERS: Dict[str, int] = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

HUNDRED = Decimal(100)
THOUSAND = Decimal(1_000)
LAKH = Decimal(100_000)
MILLION = Decimal(1_000_000)
CRORE = Decimal(10_000_000)
BILLION = Decimal(1_000_000_000)
TRILLION = Decimal(1_000_000_000_000)

_SCALE_WORDS: Dict[str, Decimal] = {
    "thousand": THOUSAND, "thousands": THOUSAND,
    "lakh": LAKH, "lakhs": LAKH, "lac": LAKH, "lacs": LAKH,
    "crore": CRORE, "crores": CRORE,
    "million": MILLION, "millions": MILLION,
    "billion": BILLION, "billions": BILLION,
    "trillion": TRILLION, "trillions": TRILLION,
}

_SUBUNIT_WORDS = {"cent", "cents", "paisa", "paise"}
_SIGN_WORDS = {"negative", "minus"}
_ARTICLES = {"a", "an"}

_FILLER_PATTERN = re.compile(r"\b(?:" + "|".join(map(re.escape, FILLER_WORDS)) + r")\b")
_CURRENCY_NAME_PATTERN = re.compile(
    r"\b(?:dollars?|dirhams?|euros?|pounds?|rupees?|riyals?|aed|usd|eur|gbp|inr|sar)\b"
)

# Tried in order; the first pattern with a match decides the amount.
_NUMERIC_PATTERNS = (
    re.compile(r"(?<!\d)\d{1,3}(?:,\d{3})+(?:\.\d+)?"),
    re.compile(r"\d+\.\d+"),
    re.compile(r"\d+"),
)

_SIGN_PREFIX = re.compile(r"\b(?:negative|minus)\s*$")

_ACTION_AMOUNT_PATTERNS = (
    re.compile(
        r"(?:spent|spend|paid|pay|cost)\s+(.*?)\s+"
        r"(?:dollars?|dirhams?|euros?|pounds?|rupees?|riyals?|aed|usd|eur|gbp|inr|sar)\b"
    ),
    re.compile(r"(?:spent|spend|paid|pay|cost)\s+(.*?)\s+(?:on|for|at)\b"),
    re.compile(r"^(.*?)\s+(?:for|on|at)\b"),
)


def normalize_text(text: str) -> str:
    """Prepare a transcript for the amount path.

    Lowercases, turns hyphens into spaces and drops filler verbs plus
    currency names so that "twenty-five dollars" reads as "twenty five".
    """
    if not text:
        return ""
    cleaned = text.lower().strip().replace("-", " ")
    cleaned = _FILLER_PATTERN.sub("", cleaned)
    cleaned = _CURRENCY_NAME_PATTERN.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def _tokenize(text: str) -> List[str]:
    return [word for word in re.split(r"[\s-]+", text.lower()) if word]


def classify_token(word: str) -> NumberToken:
    word = word.lower().strip()
    if word == "and":
        return NumberToken(word, TokenKind.CONNECTOR)
    if word == "point":
        return NumberToken(word, TokenKind.POINT)
    if word in _BASIC_NUMBERS:
        return NumberToken(word, TokenKind.BASIC, Decimal(_BASIC_NUMBERS[word]))
    if word in _TENS_NUMBERS:
        return NumberToken(word, TokenKind.TENS, Decimal(_TENS_NUMBERS[word]))
    if word == "hundred":
        return NumberToken(word, TokenKind.HUNDRED, HUNDRED)
    if word in _SCALE_WORDS:
        return NumberToken(word, TokenKind.SCALE, _SCALE_WORDS[word])
    if word in _SUBUNIT_WORDS:
        return NumberToken(word, TokenKind.SUBUNIT)
    if word in _SIGN_WORDS:
        return NumberToken(word, TokenKind.SIGN)
    return NumberToken(word, TokenKind.UNKNOWN)


def extract_numeric_amount(text: str) -> Optional[ParsedAmount]:
    if not text:
        return None
    for pattern in _NUMERIC_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        try:
            value = Decimal(match.group(0).replace(",", ""))
        except InvalidOperation:
            continue
        if _SIGN_PREFIX.search(text[: match.start()].lower()):
            value = -value
        return ParsedAmount(value, AmountSource.EXPLICIT_DIGIT)
    return None


def parse_written_number(text: str) -> Optional[ParsedAmount]:
    """Turn spelled-out numbers into a value.

    ``current`` collects the active scale group and is flushed into
    ``total`` at every scale word, so "two thousand five hundred" becomes
    2000 + 500. Words after "point" build ``fractional`` digit by digit;
    "cents"/"paise" turn the pending group into a sub-unit count.
    """
    words = _tokenize(text or "")
    if not words:
        return None

    total = Decimal(0)
    current = Decimal(0)
    fractional: Optional[Decimal] = None
    in_fractional_section = False
    negative = False

    for word in words:
        token = classify_token(word)
        kind = token.kind

        if kind in (TokenKind.CONNECTOR, TokenKind.UNKNOWN):
            continue

        if kind is TokenKind.SIGN:
            negative = True
        elif kind is TokenKind.POINT:
            in_fractional_section = True
            total += current
            current = Decimal(0)
        elif kind in (TokenKind.BASIC, TokenKind.TENS):
            if in_fractional_section:
                fractional = (fractional or Decimal(0)) * 10 + token.value
            else:
                current += token.value
        elif kind is TokenKind.HUNDRED:
            current = (current or Decimal(1)) * token.value
        elif kind is TokenKind.SCALE:
            current = (current or Decimal(1)) * token.value
            total += current
            current = Decimal(0)
        elif kind is TokenKind.SUBUNIT:
            if current > 0:
                fractional = current / HUNDRED
                current = Decimal(0)

    total += current

    if fractional is not None:
        if in_fractional_section and fractional < 1:
            total += fractional
        elif 1 <= fractional < 100:
            total += fractional / HUNDRED
        else:
            total += fractional

    if total <= 0:
        return None
    return ParsedAmount(-total if negative else total, AmountSource.WORD_DERIVED)


def parse_amount(text: str) -> Optional[ParsedAmount]:
    """Digits win over number words whenever both are present."""
    normalized = normalize_text(text)
    parsed = extract_numeric_amount(normalized)
    if parsed is not None:
        return parsed
    return parse_written_number(normalized)


def contains_number_phrase(text: str) -> bool:
    for word in _tokenize(normalize_text(text)):
        if word in _ARTICLES:
            continue
        if classify_token(word).kind in (
            TokenKind.BASIC,
            TokenKind.TENS,
            TokenKind.HUNDRED,
            TokenKind.SCALE,
        ):
            return True
    return False


def _amount_spans(lowered: str) -> Iterator[str]:
    for pattern in _ACTION_AMOUNT_PATTERNS:
        match = pattern.search(lowered)
        if match is not None:
            yield match.group(1).strip()


def extract_amount_from_command(command: str) -> Optional[ParsedAmount]:
    """Parse only the phrase between the action verb and the currency or
    preposition ("spent [two thousand] dirhams on ..."), falling back to
    the whole command."""
    lowered = (command or "").lower()
    for span in _amount_spans(lowered):
        parsed = parse_amount(span)
        if parsed is not None:
            return parsed
    return parse_amount(lowered)


def extract_written_amount(command: str) -> Optional[ParsedAmount]:
    """Word-only reading of the amount span.

    The first span that carries number words decides the result, even when
    it is zero or negative; "for a coffee" after the span never counts.
    """
    lowered = (command or "").lower()
    for span in _amount_spans(lowered):
        if contains_number_phrase(span):
            return parse_written_number(normalize_text(span))
    return parse_written_number(normalize_text(lowered))
