from __future__ import annotations

from typing import Dict

from sqlalchemy.orm import Session

from csvimport.db.models import Opportunity, Quote, QuoteLine
from csvimport.services.normalize.schema import MappedRecord
from .base import DatabaseSink, RecordInvalid, parse_decimal

_REQUIRED = (
    ("opportunityname", "Opportunity Name"),
    ("quotename", "Quote Name"),
    ("quotelineitemname", "Quote Line Name"),
    ("quantity", "Quantity"),
    ("unitprice", "Unit Price"),
)


class QuoteHierarchySink(DatabaseSink):
    """Stores quote lines, creating their opportunity and quote on first sight.

    Parents are resolved by name before each child is inserted, so records of
    one quote may be spread over several batches.
    """

    categories = ("opportunities", "quotes", "quoteLines")

    def store(self, session: Session, record: MappedRecord, counts: Dict[str, int]) -> None:
        values = {key: (record.get(key) or "").strip() for key, _ in _REQUIRED}
        line_name = values["quotelineitemname"] or "<unnamed>"

        missing = [label for key, label in _REQUIRED if not values[key]]
        if missing:
            raise RecordInvalid(f"Quote line '{line_name}': missing {', '.join(missing)}")

        try:
            quantity = parse_decimal(values["quantity"], "quantity")
            unit_price = parse_decimal(values["unitprice"], "unit price")
        except RecordInvalid as exc:
            raise RecordInvalid(f"Quote line '{line_name}': {exc}")
        if quantity <= 0:
            raise RecordInvalid(f"Quote line '{line_name}': quantity must be positive")

        opportunity = session.query(Opportunity).filter_by(name=values["opportunityname"]).one_or_none()
        if opportunity is None:
            opportunity = Opportunity(name=values["opportunityname"])
            session.add(opportunity)
            session.flush()
            counts["opportunities"] += 1

        quote = (
            session.query(Quote)
            .filter_by(opportunity_id=opportunity.id, name=values["quotename"])
            .one_or_none()
        )
        if quote is None:
            quote = Quote(opportunity_id=opportunity.id, name=values["quotename"])
            session.add(quote)
            session.flush()
            counts["quotes"] += 1

        session.add(
            QuoteLine(
                quote_id=quote.id,
                name=values["quotelineitemname"],
                product_code=(record.get("productid") or "").strip() or None,
                quantity=quantity,
                unit_price=unit_price,
            )
        )
        session.flush()
        counts["quoteLines"] += 1
