"""Target field descriptors offered to the mapping step."""

from __future__ import annotations

from typing import List

from csvimport.services.normalize.schema import FieldDescriptor

# Fixed keys of the quote line wizard, matched against headers verbatim.
QUOTE_LINE_FIELDS: List[FieldDescriptor] = [
    FieldDescriptor(label="Opportunity Name", api_name="opportunityname"),
    FieldDescriptor(label="Quote Name", api_name="quotename"),
    FieldDescriptor(label="Quote Line Name", api_name="quotelineitemname"),
    FieldDescriptor(label="Product Code", api_name="productid"),
    FieldDescriptor(label="Quantity", api_name="quantity"),
    FieldDescriptor(label="Unit Price", api_name="unitprice"),
]


def describe_fields(model) -> List[FieldDescriptor]:
    """List the columns of ``model`` that carry an ``info["label"]``."""
    return [
        FieldDescriptor(label=column.info["label"], api_name=column.key)
        for column in model.__table__.columns
        if "label" in column.info
    ]


def quote_line_fields() -> List[FieldDescriptor]:
    return list(QUOTE_LINE_FIELDS)
