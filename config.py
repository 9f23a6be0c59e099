import os
from decimal import Decimal

LOG_DIR = "logs"
LOG_FILE = os.path.join(LOG_DIR, "parser.log")
LOG_LEVEL = os.environ.get("EXPENSE_PARSER_LOG_LEVEL", "INFO")

# Optional JSON override for the built-in currency table
CURRENCIES_FILE = "currencies.json"

DEFAULT_CURRENCY = "USD"
DEFAULT_CATEGORY = "Other"

# Parsed amounts must satisfy MIN_AMOUNT < amount <= MAX_AMOUNT
MIN_AMOUNT = Decimal("0")
MAX_AMOUNT = Decimal("999999")

COMMON_CURRENCY_CODES = ("AED", "USD", "EUR", "GBP", "INR", "SAR")

FILLER_WORDS = ("just", "spent", "paid", "cost", "costs", "pay")

NOISE_WORDS = (
    "music", "playing", "kids", "talking",
    "traffic", "noise", "car", "engine", "running",
)

os.makedirs(LOG_DIR, exist_ok=True)
