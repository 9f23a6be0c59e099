from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from category_module import CATEGORY_RULES, CategoryRule, has_category_keyword, infer_category
from config import DEFAULT_CATEGORY, DEFAULT_CURRENCY, MAX_AMOUNT, MIN_AMOUNT, NOISE_WORDS
from currency_module import CurrencyDetector, CurrencyLike, CurrencyRegistry
from logger import log_debug, log_info
from number_module import (
    AmountSource,
    ParsedAmount,
    contains_number_phrase,
    extract_numeric_amount,
    extract_written_amount,
    normalize_text,
)


@dataclass(frozen=True)
class ExtractedExpenseData:
    amount: Optional[Decimal]
    currency: str
    category: str = DEFAULT_CATEGORY
    merchant: Optional[str] = None
    amount_source: Optional[AmountSource] = None

    @property
    def has_amount(self) -> bool:
        return self.amount is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "category": self.category,
            "merchant": self.merchant,
            "amount_source": self.amount_source.value if self.amount_source else None,
        }


_MERCHANT_PATTERN = re.compile(r"\b(?:at|from)\s+([a-zA-Z\s]+?)(?:[\s.,!?;:]|$)")

_ACTION_WORDS = ("spent", "spend", "paid", "pay", "cost", "bought", "purchase", "buy")
_MERCHANT_MARKERS = (" at ", " from ")

_BASE_PHRASES = (
    "I just spent 25 dollars on food",
    "I paid 50 dollars for groceries at Walmart",
    "Log 15 dollars for lunch",
    "I spent 30 dollars on gas",
    "I bought coffee for 5 dollars",
    "Add 100 dollars shopping expense",
    "I just paid 20 dollars for entertainment",
)

_REGIONAL_PHRASES: Dict[str, tuple] = {
    "AE": (
        "I just spent 50 AED on groceries",
        "I paid 25 dirhams for lunch",
        "Log 100 AED for shopping",
    ),
    "GB": (
        "I just spent 20 pounds on petrol",
        "I paid 15 pounds for lunch",
    ),
    "IN": (
        "I spent 500 rupees on dinner",
        "I paid two lakh rupees for the car",
    ),
}

_REGIONAL_CURRENCY_WORD = {"AE": "dirhams", "GB": "pounds", "IN": "rupees"}


def extract_merchant(text: str, noise_words: Iterable[str] = NOISE_WORDS) -> Optional[str]:
    """Return the word that follows "at"/"from", minus background noise words."""
    if not text:
        return None
    lowered = text.lower()
    match = _MERCHANT_PATTERN.search(lowered)
    if match is None:
        return None
    if len(lowered) == len(text):
        span = text[match.start(1) : match.end(1)]
    else:
        span = match.group(1)
    noise = {word.lower() for word in noise_words}
    kept = [word for word in span.strip().split() if word.lower() not in noise]
    merchant = " ".join(kept)
    return merchant or None


def score_confidence(transcript: str, detector: Optional[CurrencyDetector] = None) -> float:
    """Heuristic 0..1 score of how much of an expense the transcript carries."""
    if not transcript or not transcript.strip():
        return 0.0
    lowered = transcript.strip().lower()
    padded = f" {lowered} "
    detector = detector or CurrencyDetector()

    score = 0.0
    if re.search(r"\d", lowered) or contains_number_phrase(lowered):
        score += 0.3
    if has_category_keyword(lowered):
        score += 0.3
    if any(re.search(r"\b" + word + r"\b", lowered) for word in _ACTION_WORDS):
        score += 0.2
    if any(marker in padded for marker in _MERCHANT_MARKERS):
        score += 0.1
    if detector.contains_currency(lowered):
        score += 0.1
    return round(min(score, 1.0), 2)


def get_suggested_phrases(region: Optional[str] = None) -> List[str]:
    country = re.split(r"[_-]", region.strip())[-1].upper() if region else ""
    currency_word = _REGIONAL_CURRENCY_WORD.get(country)
    phrases = [
        phrase.replace("dollars", currency_word) if currency_word else phrase
        for phrase in _BASE_PHRASES
    ]
    phrases.extend(_REGIONAL_PHRASES.get(country, ()))
    return phrases


class ExpenseParser:
    """Turns a transcript into an :class:`ExtractedExpenseData`.

    Holds only read-only tables and is safe to share across threads.
    ``max_amount=None`` lifts the upper ceiling.
    """

    def __init__(
        self,
        registry: Optional[CurrencyRegistry] = None,
        *,
        category_rules: Sequence[CategoryRule] = CATEGORY_RULES,
        noise_words: Iterable[str] = NOISE_WORDS,
        max_amount: Optional[Decimal] = MAX_AMOUNT,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        self.registry = registry if registry is not None else CurrencyRegistry.builtin()
        self.currency_detector = CurrencyDetector(self.registry)
        self.category_rules = tuple(category_rules)
        self.noise_words = frozenset(word.lower() for word in noise_words)
        self.max_amount = max_amount
        self.default_currency = default_currency

    def _resolve_amount(self, text: str) -> Optional[ParsedAmount]:
        parsed = extract_numeric_amount(normalize_text(text))
        if parsed is None:
            # words are read from the amount span only
            parsed = extract_written_amount(text)
        return parsed

    def _accept(self, parsed: Optional[ParsedAmount]) -> Optional[ParsedAmount]:
        if parsed is None:
            return None
        if parsed.value <= MIN_AMOUNT:
            log_info("Rejected non-positive amount %s", parsed.value)
            return None
        if self.max_amount is not None and parsed.value > self.max_amount:
            log_info("Rejected amount %s above ceiling %s", parsed.value, self.max_amount)
            return None
        return parsed

    def _resolve_currency(self, text: str, default: CurrencyLike) -> str:
        paired = self.currency_detector.extract_amount_and_currency(text, default)
        if paired is not None:
            return paired.currency
        return self.currency_detector.detect_currency(text, default)

    def parse(self, transcript: str, default_currency: CurrencyLike = None) -> ExtractedExpenseData:
        text = transcript if isinstance(transcript, str) else ""
        default = default_currency or self.default_currency

        amount = self._accept(self._resolve_amount(text))
        currency = self._resolve_currency(text, default)
        category = infer_category(text.lower(), self.category_rules)
        merchant = extract_merchant(text, self.noise_words)

        result = ExtractedExpenseData(
            amount=amount.value if amount else None,
            currency=currency,
            category=category,
            merchant=merchant,
            amount_source=amount.source if amount else None,
        )
        log_debug("Parsed %r -> %s", text, result)
        return result

    def score_confidence(self, transcript: str) -> float:
        return score_confidence(transcript, self.currency_detector)


def format_reply(data: ExtractedExpenseData, registry: Optional[CurrencyRegistry] = None) -> str:
    """Confirmation line for a parsed expense, or a retry prompt."""
    if data.amount is None:
        return "Sorry, I could not understand the amount. Please try again."
    registry = registry if registry is not None else _DEFAULT_PARSER.registry
    definition = registry.from_code(data.currency)
    places = definition.decimal_places if definition else 2
    reply = f"Logged {data.amount:,.{places}f} {data.currency} for {data.category}"
    if data.merchant:
        reply += f" at {data.merchant}"
    return reply + "."


_DEFAULT_PARSER = ExpenseParser()


def parse_expense(transcript: str, default_currency: CurrencyLike = DEFAULT_CURRENCY) -> ExtractedExpenseData:
    return _DEFAULT_PARSER.parse(transcript, default_currency)
