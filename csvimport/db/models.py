from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class ImportBatch(Base):
    __tablename__ = "import_batch"

    id = Column(Integer, primary_key=True)
    wizard = Column(String, nullable=False)
    file_name = Column(String, nullable=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    total_rows = Column(Integer, default=0)
    processed_rows = Column(Integer, default=0)
    inserted_counts = Column(JSON, default=dict)
    errors = Column(JSON, default=list)
    success = Column(Boolean, nullable=True)


class Opportunity(Base):
    __tablename__ = "opportunity"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True, info={"label": "Opportunity Name"})
    account_name = Column(String, info={"label": "Account Name"})
    stage = Column(String, info={"label": "Stage"})
    amount = Column(Numeric(18, 2), info={"label": "Amount"})
    close_date = Column(Date, info={"label": "Close Date"})
    lead_source = Column(String, info={"label": "Lead Source"})
    description = Column(Text, info={"label": "Description"})

    quotes = relationship("Quote", back_populates="opportunity")


class Quote(Base):
    __tablename__ = "quote"
    __table_args__ = (
        UniqueConstraint("opportunity_id", "name", name="uix_quote_opportunity_name"),
    )

    id = Column(Integer, primary_key=True)
    opportunity_id = Column(Integer, ForeignKey("opportunity.id"), nullable=False)
    name = Column(String, nullable=False)

    opportunity = relationship("Opportunity", back_populates="quotes")
    lines = relationship("QuoteLine", back_populates="quote")


class QuoteLine(Base):
    __tablename__ = "quote_line"

    id = Column(Integer, primary_key=True)
    quote_id = Column(Integer, ForeignKey("quote.id"), nullable=False)
    name = Column(String, nullable=False)
    product_code = Column(String, nullable=True)
    quantity = Column(Numeric(18, 4), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)

    quote = relationship("Quote", back_populates="lines")
