from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from config import DEFAULT_CATEGORY

FOOD_DINING = "Food & Dining"
GROCERY = "Grocery"
TRANSPORTATION = "Transportation"
SHOPPING = "Shopping"
ENTERTAINMENT = "Entertainment"
BILLS_UTILITIES = "Bills & Utilities"
HEALTHCARE = "Healthcare"
EDUCATION = "Education"
OTHER = DEFAULT_CATEGORY

CATEGORIES: Tuple[str, ...] = (
    FOOD_DINING,
    GROCERY,
    TRANSPORTATION,
    SHOPPING,
    ENTERTAINMENT,
    BILLS_UTILITIES,
    HEALTHCARE,
    EDUCATION,
    OTHER,
)


@dataclass(frozen=True)
class CategoryRule:
    keyword: str
    category: str


# Matching is plain substring containment and the first rule in this order
# wins, so "phone" lands in Shopping even though Bills & Utilities lists it too.
_CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (FOOD_DINING, (
        "food", "tea", "coffee", "lunch", "dinner", "breakfast", "restaurant",
        "meal", "drink", "cafe", "dining", "eat", "ate", "snack", "brunch",
        "takeout", "takeaway", "delivery", "pizza", "burger", "sandwich",
        "sushi", "dessert", "ice cream", "bakery", "starbucks", "mcdonald",
    )),
    (GROCERY, (
        "grocery", "groceries", "supermarket", "market", "food shopping",
        "vegetables", "fruits", "produce", "walmart", "carrefour", "lulu",
    )),
    (TRANSPORTATION, (
        "gas", "fuel", "taxi", "uber", "transport", "transportation", "parking",
        "petrol", "toll", "careem", "lyft", "metro", "subway", "train", "bus",
        "diesel", "station", "refuel", "fill up", "car", "vehicle", "ride",
        "trip", "travel", "flight", "airline", "ticket",
    )),
    (SHOPPING, (
        "shopping", "clothes", "clothing", "store", "mall", "purchase", "buy", "bought",
        "shoes", "accessories", "fashion", "retail", "amazon", "online shopping",
        "electronics", "gadget", "phone", "laptop",
    )),
    (ENTERTAINMENT, (
        "movie", "cinema", "concert", "entertainment", "fun", "games", "theatre",
        "sports", "gym", "fitness", "netflix", "streaming", "spotify", "music",
        "hobby", "recreation", "amusement", "park",
    )),
    (BILLS_UTILITIES, (
        "bill", "bills", "rent", "utility", "utilities", "electricity", "water",
        "internet", "phone", "subscription", "insurance", "mortgage", "loan",
        "payment", "recurring", "monthly", "annual",
    )),
    (HEALTHCARE, (
        "healthcare", "health", "doctor", "hospital", "medicine", "medical",
        "pharmacy", "clinic", "prescription", "dentist", "therapy", "checkup",
        "emergency", "surgery", "treatment",
    )),
    (EDUCATION, (
        "education", "school", "course", "training", "books", "learning", "tuition",
        "college", "university", "class", "workshop", "seminar", "certification",
        "textbook", "supplies", "fees",
    )),
)

CATEGORY_RULES: Tuple[CategoryRule, ...] = tuple(
    CategoryRule(keyword, category)
    for category, keywords in _CATEGORY_KEYWORDS
    for keyword in keywords
)


def find_category_rule(
    text: str, rules: Sequence[CategoryRule] = CATEGORY_RULES
) -> Optional[CategoryRule]:
    if not text:
        return None
    lowered = text.lower()
    for rule in rules:
        if rule.keyword in lowered:
            return rule
    return None


def infer_category(
    text: str,
    rules: Sequence[CategoryRule] = CATEGORY_RULES,
    default: str = DEFAULT_CATEGORY,
) -> str:
    rule = find_category_rule(text, rules)
    return rule.category if rule else default


def category_keywords(category: str, rules: Iterable[CategoryRule] = CATEGORY_RULES) -> Tuple[str, ...]:
    return tuple(rule.keyword for rule in rules if rule.category == category)


def has_category_keyword(text: str, rules: Sequence[CategoryRule] = CATEGORY_RULES) -> bool:
    return find_category_rule(text, rules) is not None
