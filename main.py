import argparse
from typing import Callable, List, Optional

from config import DEFAULT_CURRENCY
from voice_module import (
    ExpenseParser,
    ExtractedExpenseData,
    format_reply,
    get_suggested_phrases,
)

EXIT_WORDS = {"stop", "exit", "quit"}
MAX_ATTEMPTS = 5


def show_help(region: Optional[str] = None) -> str:
    lines = ["Try phrases like:"]
    lines.extend(f"- {phrase}" for phrase in get_suggested_phrases(region))
    lines.append("- Stop to exit")
    help_text = "\n".join(lines)
    print(help_text)
    return help_text


def _describe(data: ExtractedExpenseData) -> str:
    amount = data.amount if data.amount is not None else "?"
    merchant = data.merchant or "-"
    return f"amount={amount} currency={data.currency} category={data.category} merchant={merchant}"


def handle_transcript(parser: ExpenseParser, transcript: str, default_currency: str) -> ExtractedExpenseData:
    data = parser.parse(transcript, default_currency)
    print(f"Heard: {transcript}")
    print(_describe(data))
    print(format_reply(data, parser.registry))
    return data


def interactive_loop(
    parser: ExpenseParser,
    default_currency: str,
    region: Optional[str] = None,
    read_line: Optional[Callable[[str], str]] = None,
) -> int:
    read_line = read_line or input
    print("Expense parser ready. Type what you spent, or stop to quit.")
    attempts = 0
    parsed_count = 0

    while attempts < MAX_ATTEMPTS:
        try:
            user_text = read_line("> ").strip()
        except EOFError:
            break

        if not user_text:
            attempts += 1
            print(f"No input. Attempt {attempts}/{MAX_ATTEMPTS}.")
            continue

        attempts = 0
        lowered = user_text.lower()
        if lowered in EXIT_WORDS:
            print("Goodbye.")
            break
        if lowered == "help":
            show_help(region)
            continue

        data = handle_transcript(parser, user_text, default_currency)
        if data.has_amount:
            parsed_count += 1

    if attempts >= MAX_ATTEMPTS:
        print("No input detected repeatedly. Exiting.")
    return parsed_count


def build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(description="Turn spoken expense phrases into structured records.")
    arg_parser.add_argument("transcripts", nargs="*", help="transcripts to parse; reads stdin when omitted")
    arg_parser.add_argument("--currency", default=None, help=f"fallback currency code (default {DEFAULT_CURRENCY})")
    arg_parser.add_argument("--region", default=None, help="region or locale such as AE or en_IN")
    arg_parser.add_argument("--no-limit", action="store_true", help="accept amounts above the usual ceiling")
    return arg_parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    parser = ExpenseParser(max_amount=None) if args.no_limit else ExpenseParser()
    default_currency = args.currency or parser.registry.default_currency_for_region(args.region)

    if not args.transcripts:
        interactive_loop(parser, default_currency, args.region)
        return 0

    results = [handle_transcript(parser, transcript, default_currency) for transcript in args.transcripts]
    # non-zero when any transcript had no usable amount
    return 0 if all(data.has_amount for data in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
