#!/usr/bin/env python3
"""Generate a sample loan ledger run for manual validation.

Opens synthetic loans, records generated payments through the store, and
writes loans, payments and summaries as JSON files.
"""

import argparse
import json
from pathlib import Path

from loan_ledger.config import AppConfig
from loan_ledger.generators import LoanGenerator, PaymentGenerator
from loan_ledger.ledger import summarize_loan, summarize_portfolio
from loan_ledger.logging import get_logger, setup_logging
from loan_ledger.serialization import to_dict
from loan_ledger.store import LoanStore

logger = get_logger(__name__)


def save_json(data: list, filename: str, output_dir: Path) -> None:
    """Save records to a JSON file."""
    filepath = output_dir / filename
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump([to_dict(item) for item in data], f, indent=2, ensure_ascii=False)
    logger.info("Saved %d records to %s", len(data), filepath)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample loan ledger")
    parser.add_argument("--loans", type=int, default=5, help="Number of loans to open")
    parser.add_argument("--payments", type=int, default=12, help="Payments to record per loan")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--output-dir", type=Path, default=Path("local"), help="Directory for JSON output")
    args = parser.parse_args()

    config = AppConfig.from_env()
    setup_logging(config.logging.level, config.logging.format_type)

    args.output_dir.mkdir(parents=True, exist_ok=True)

    store = LoanStore(config=config.ledger)
    loan_gen = LoanGenerator(seed=args.seed)
    payment_gen = PaymentGenerator(seed=args.seed)

    for loan in loan_gen.generate_batch(args.loans):
        store.add_loan(loan)
        for draft in payment_gen.generate_for_loan(loan, args.payments):
            store.record_payment(
                loan.loan_id,
                draft.amount,
                draft.payment_date,
                payment_method=draft.payment_method,
                transaction_fee=draft.transaction_fee,
                payment_time=draft.payment_time,
                payment_id=draft.payment_id,
            )

    loans = store.list_loans()
    summaries = [summarize_loan(loan, store.payments_for(loan.loan_id)) for loan in loans]

    save_json(loans, "loans.json", args.output_dir)
    save_json(store.payments, "payments.json", args.output_dir)
    save_json(summaries, "loan_summaries.json", args.output_dir)
    save_json([summarize_portfolio(loans)], "portfolio.json", args.output_dir)

    logger.info("Outstanding across %d loans: %s", len(loans), store.outstanding())


if __name__ == "__main__":
    main()
