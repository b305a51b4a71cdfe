"""
Product filtering, sorting and pagination over in-memory product records.

Every stage is a pure function ``(records, query) -> records`` that never
mutates its input. The reference order is category -> rating -> price ->
sort -> paginate; ``count_products`` runs the same stages without the page
slice so the total reflects the full filtered set.

Query values arrive as raw query-string strings. Numbers are read with
leading-integer semantics ("4.5" -> 4, "12abc" -> 12) and anything that
does not parse falls back to the documented default.
"""
import logging
import math
import re
from typing import Any, Callable, List, Mapping, Optional, Sequence

from schemas import Product, ProductPage

logger = logging.getLogger(__name__)

DEFAULT_PAGE_NUMBER = 1
DEFAULT_PAR_PAGE = 9
LOW_TO_HIGH = "low-to-high"

Query = Mapping[str, Any]
Predicate = Callable[[Product], bool]
Stage = Callable[[Sequence[Product], Query], List[Product]]

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


# ----------------------- Parsing -----------------------
def parse_int(value: Any) -> Optional[int]:
    """Leading integer of ``value``, or None when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _present(query: Query, key: str) -> bool:
    value = query.get(key)
    return value is not None and value != ""


def price_bounds(query: Query):
    low = parse_int(query.get("lowPrice"))
    high = parse_int(query.get("highPrice"))
    return (
        low if low is not None else 0,
        high if high is not None else math.inf,
    )


def page_number(query: Query) -> int:
    value = parse_int(query.get("pageNumber"))
    return value if value is not None and value >= 1 else DEFAULT_PAGE_NUMBER


def par_page(query: Query) -> int:
    value = parse_int(query.get("parPage"))
    return value if value is not None and value >= 1 else DEFAULT_PAR_PAGE


# ----------------------- Predicates -----------------------
def in_category(category: str) -> Predicate:
    return lambda product: product.category == category


def in_rating_bucket(rating: int) -> Predicate:
    """Half-open bucket: 4 keeps 4.0 up to 4.999, not 5.0."""
    return lambda product: rating <= product.rating < rating + 1


def in_price_range(low: float, high: float) -> Predicate:
    return lambda product: low <= product.price <= high


# ----------------------- Stages -----------------------
def category_query(records: Sequence[Product], query: Query) -> List[Product]:
    if not _present(query, "category"):
        return list(records)
    keep = in_category(query["category"])
    return [p for p in records if keep(p)]


def rating_query(records: Sequence[Product], query: Query) -> List[Product]:
    rating = parse_int(query.get("rating")) if _present(query, "rating") else None
    if rating is None:
        return list(records)
    keep = in_rating_bucket(rating)
    return [p for p in records if keep(p)]


def price_query(records: Sequence[Product], query: Query) -> List[Product]:
    keep = in_price_range(*price_bounds(query))
    return [p for p in records if keep(p)]


def sort_by_price(records: Sequence[Product], query: Query) -> List[Product]:
    if not _present(query, "sortPrice"):
        return list(records)
    descending = query["sortPrice"] != LOW_TO_HIGH
    # sorted() is stable in both directions
    return sorted(records, key=lambda p: p.price, reverse=descending)


def paginate(records: Sequence[Product], query: Query) -> List[Product]:
    size = par_page(query)
    start = (page_number(query) - 1) * size
    return list(records[start:start + size])


# ----------------------- Pipelines -----------------------
def pipeline(*stages: Stage) -> Stage:
    def run(records: Sequence[Product], query: Query) -> List[Product]:
        result = list(records)
        for stage in stages:
            result = stage(result, query)
        return result
    return run


FILTER_STAGES = (category_query, rating_query, price_query, sort_by_price)

filter_products = pipeline(*FILTER_STAGES)
get_products = pipeline(*FILTER_STAGES, paginate)


def count_products(records: Sequence[Product], query: Query) -> int:
    return len(filter_products(records, query))


def query_products(records: Sequence[Product], query: Query) -> ProductPage:
    total = count_products(records, query)
    page = get_products(records, query)
    logger.debug(
        "Product query matched %d of %d products, returning %d",
        total, len(records), len(page),
    )
    return ProductPage(products=page, total_product=total, par_page=par_page(query))
