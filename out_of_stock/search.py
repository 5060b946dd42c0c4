"""
Out-of-Stock — Search Ranking

Relevance scoring over the display snapshot of a request:

  3  query equals the product or customer name (case-insensitive)
  2  query is contained in the product or customer name
  1  query is contained in the product category or variant label
  0  no match; the record is dropped

Ties are ordered like every other listing: created_at descending, then id.

@file out_of_stock/search.py
"""

from __future__ import annotations

from .criteria import normalize_query, sort_key
from .records import RequestRecord

EXACT_NAME = 3
NAME_CONTAINS = 2
DETAIL_CONTAINS = 1


def score(record: RequestRecord, query: str) -> int:
    names = [(record.product_name or '').casefold(), (record.customer_name or '').casefold()]
    if query in names:
        return EXACT_NAME
    if any(query in name for name in names):
        return NAME_CONTAINS
    details = ((record.product_category or '').casefold(), (record.variant_label or '').casefold())
    if any(query in detail for detail in details):
        return DETAIL_CONTAINS
    return 0


def rank(records, query: str | None) -> list[RequestRecord]:
    """Score, drop non-matches and order. A blank query returns records in listing order."""
    query = normalize_query(query)
    if query is None:
        return sorted(records, key=sort_key)
    scored = [(score(record, query), record) for record in records]
    ranked = [(points, record) for points, record in scored if points > 0]
    ranked.sort(key=lambda pair: (-pair[0], *sort_key(pair[1])))
    return [record for _, record in ranked]
