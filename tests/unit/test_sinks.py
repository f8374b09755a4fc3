from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from csvimport.db.models import Opportunity, Quote, QuoteLine
from csvimport.services.ingest.batch_importer import import_all
from csvimport.services.sinks.opportunity import OpportunitySink
from csvimport.services.sinks.quote_hierarchy import QuoteHierarchySink


def line(opp, quote, name, quantity="1", price="10.00", product="P-1"):
    return {
        "opportunityname": opp,
        "quotename": quote,
        "quotelineitemname": name,
        "productid": product,
        "quantity": quantity,
        "unitprice": price,
    }


def test_opportunity_sink_inserts_and_converts(session):
    result = OpportunitySink()([
        {"name": "Acme", "amount": "1,200.50", "close_date": "2024-03-31", "stage": "Prospecting"},
        {"name": "Globex", "amount": "", "close_date": ""},
    ])

    assert result.success
    assert result.inserted_counts == {"opportunities": 2}
    acme = session.query(Opportunity).filter_by(name="Acme").one()
    assert acme.amount == Decimal("1200.50")
    assert acme.close_date == date(2024, 3, 31)
    assert acme.stage == "Prospecting"
    globex = session.query(Opportunity).filter_by(name="Globex").one()
    assert globex.amount is None


def test_opportunity_sink_reports_bad_records_and_keeps_good_ones(session):
    result = OpportunitySink()([
        {"name": "Acme", "amount": "lots"},
        {"name": "", "amount": "5"},
        {"name": "Initech", "close_date": "not a date"},
        {"name": "Globex", "amount": "10"},
        {"name": "Globex", "amount": "20"},
    ])

    assert not result.success
    assert result.inserted_counts == {"opportunities": 1}
    assert result.errors == [
        "Opportunity 'Acme': invalid amount 'lots'",
        "Opportunity Name is required (row values: 5)",
        "Opportunity 'Initech': invalid close date 'not a date'",
        "Opportunity 'Globex' already exists",
    ]
    assert session.query(Opportunity).count() == 1


def test_opportunity_sink_rejects_unknown_fields(session):
    result = OpportunitySink()([{"name": "Acme", "owner": "me"}])
    assert result.errors == ["Opportunity 'Acme': unknown field 'owner'"]


def test_quote_sink_creates_parents_once(session):
    sink = QuoteHierarchySink()
    first = sink([
        line("Acme", "Q-1", "Support"),
        line("Acme", "Q-1", "Training", quantity="2"),
        line("Acme", "Q-2", "Licenses", quantity="25", price="40"),
    ])
    second = sink([line("Acme", "Q-2", "Hardware"), line("Globex", "Q-1", "Support")])

    assert first.inserted_counts == {"opportunities": 1, "quotes": 2, "quoteLines": 3}
    assert second.inserted_counts == {"opportunities": 1, "quotes": 1, "quoteLines": 2}
    assert session.query(Opportunity).count() == 2
    assert session.query(Quote).count() == 3
    acme_q2 = session.query(Quote).join(Opportunity).filter(
        Opportunity.name == "Acme", Quote.name == "Q-2"
    ).one()
    assert sorted(l.name for l in acme_q2.lines) == ["Hardware", "Licenses"]


def test_quote_sink_reports_invalid_lines(session):
    result = QuoteHierarchySink()([
        line("Acme", "", "Support"),
        line("Acme", "Q-1", "Support", quantity="0"),
        line("Acme", "Q-1", "Support", price="abc"),
        line("Acme", "Q-1", "Valid"),
    ])

    assert not result.success
    assert result.errors == [
        "Quote line 'Support': missing Quote Name",
        "Quote line 'Support': quantity must be positive",
        "Quote line 'Support': invalid unit price 'abc'",
    ]
    assert result.inserted_counts == {"opportunities": 1, "quotes": 1, "quoteLines": 1}
    assert session.query(QuoteLine).count() == 1


def test_database_errors_roll_back_and_propagate(session):
    sink = QuoteHierarchySink()
    calls = []

    def store(db, record, counts):
        calls.append(record)
        db.add(Opportunity(name=record["opportunityname"]))
        db.flush()
        if len(calls) == 2:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    sink.store = store
    with pytest.raises(OperationalError):
        sink([line("Acme", "Q-1", "a"), line("Globex", "Q-1", "b")])
    assert session.query(Opportunity).count() == 0


@pytest.mark.parametrize("raw", ["NaN", "Infinity", "-inf", "sNaN"])
def test_quote_sink_rejects_non_finite_numbers(session, raw):
    result = QuoteHierarchySink()([
        line("Acme", "Q-1", "Bad quantity", quantity=raw),
        line("Acme", "Q-1", "Bad price", price=raw),
        line("Acme", "Q-1", "Valid"),
    ])

    assert result.errors == [
        f"Quote line 'Bad quantity': invalid quantity '{raw}'",
        f"Quote line 'Bad price': invalid unit price '{raw}'",
    ]
    assert result.inserted_counts["quoteLines"] == 1


@pytest.mark.parametrize("raw", ["NaN", "Infinity"])
def test_opportunity_sink_rejects_non_finite_amount(session, raw):
    result = OpportunitySink()([{"name": "Acme", "amount": raw}])

    assert not result.success
    assert result.errors == [f"Opportunity 'Acme': invalid amount '{raw}'"]
    assert session.query(Opportunity).count() == 0


def test_non_finite_quantity_does_not_end_the_run(session):
    outcome = import_all(
        [line("Acme", "Q-1", "a"), line("Acme", "Q-1", "b", quantity="NaN"), line("Acme", "Q-1", "c")],
        QuoteHierarchySink(),
        1,
        pause=0,
    )

    assert outcome.processed == 3
    assert outcome.errors == ["Quote line 'b': invalid quantity 'NaN'"]
    assert outcome.inserted_counts["quoteLines"] == 2
