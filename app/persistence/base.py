"""Row conversion shared by repositories."""

from datetime import datetime
from decimal import Decimal
from typing import Any


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert a SQLAlchemy row to a dict of JSON-safe primitives.

    psycopg returns NUMERIC columns as Decimal and TIMESTAMPTZ columns as
    datetime; both are converted so rows can be handed straight to the
    response schemas.
    """
    result = {}
    for k, v in dict(row._mapping).items():
        if isinstance(v, Decimal):
            result[k] = float(v)
        elif isinstance(v, datetime):
            result[k] = v.isoformat()
        else:
            result[k] = v
    return result
