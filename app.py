import os
from typing import Any, Dict, Optional
from flask import Flask, jsonify, request
from flask_cors import CORS

from category_module import CATEGORIES, CATEGORY_RULES
from config import CURRENCIES_FILE
from currency_module import CurrencyDefinition, CurrencyRegistry, CurrencyTableError, load_currency_table
from voice_module import ExpenseParser, format_reply, get_suggested_phrases
from logger import log_error, log_info


def _load_registry(path: Optional[str] = CURRENCIES_FILE) -> CurrencyRegistry:
    if path and os.path.isfile(path):
        try:
            return load_currency_table(path)
        except (CurrencyTableError, OSError) as exc:
            log_error("Currency table %s rejected, using built-in table: %s", path, exc)
    return CurrencyRegistry.builtin()


app = Flask(__name__)
CORS(app)  # allow the mobile/web clients to reach the API
registry = _load_registry()
expense_parser = ExpenseParser(registry)

VOICE_HELP_TEXT = (
    "Try phrases like:\n"
    "- I just spent 25 dollars on food\n"
    "- I paid two thousand dirhams for groceries at Carrefour\n"
    "- I spent one lakh rupees on furniture\n"
    "- Log 15 pounds for lunch"
)


def _is_truthy(value: Any) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def _serialize_currency(definition: CurrencyDefinition) -> Dict[str, Any]:
    return {
        "code": definition.code,
        "symbol": definition.symbol,
        "display_name": definition.display_name,
        "short_name": definition.short_name,
        "decimal_places": definition.decimal_places,
        "is_rtl": definition.is_right_to_left,
        "locale_identifier": definition.locale_identifier,
        "keywords": sorted(definition.keywords),
    }


@app.route("/api/parse", methods=["POST"])
def api_parse():
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    transcript = payload.get("transcript")
    if not isinstance(transcript, str):
        return jsonify({"error": "Transcript text required."}), 400

    default_currency = payload.get("default_currency")
    if not isinstance(default_currency, str) or not default_currency.strip():
        region = payload.get("region")
        default_currency = registry.default_currency_for_region(region if isinstance(region, str) else None)

    try:
        parsed = expense_parser.parse(transcript, default_currency)
        confidence = expense_parser.score_confidence(transcript)
    except Exception as exc:
        log_error("Failed to parse transcript %r: %s", transcript, exc)
        return jsonify({"error": "Could not parse the transcript."}), 500

    response: Dict[str, Any] = parsed.to_dict()
    response["confidence"] = confidence
    response["reply"] = format_reply(parsed, registry)
    if parsed.has_amount:
        log_info("Parsed expense %s %s (%s)", parsed.amount, parsed.currency, parsed.category)
    else:
        response["help"] = VOICE_HELP_TEXT
    return jsonify(response)


@app.route("/api/currencies")
def api_currencies():
    definitions = registry.common() if _is_truthy(request.args.get("common")) else registry.definitions
    return jsonify({"items": [_serialize_currency(definition) for definition in definitions]})


@app.route("/api/categories")
def api_categories():
    return jsonify(
        {
            "items": list(CATEGORIES),
            "rules": [{"keyword": rule.keyword, "category": rule.category} for rule in CATEGORY_RULES],
        }
    )


@app.route("/api/phrases")
def api_phrases():
    region = request.args.get("region", "")
    return jsonify(
        {
            "region": region.strip().upper() or None,
            "default_currency": registry.default_currency_for_region(region),
            "items": get_suggested_phrases(region),
        }
    )


if __name__ == "__main__":
    app.run(debug=True)
