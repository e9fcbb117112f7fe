"""
utils/query.py
-----------------
Turns query-string arguments into MongoDB filters, sort specs and
the $match + $facet pipeline used by the paginated list endpoints.
"""

import math
import re
from datetime import datetime, timezone

from flask import current_app

from utils.errors import ApiError

CAR_SEARCH_FIELDS = ["brand", "model", "category", "location", "description"]
CAR_EXACT_FILTERS = ["brand", "model", "category", "transmission", "fuelType",
                     "status", "location", "registrationNumber"]
# query arg pair -> (document field, number type)
CAR_RANGE_FILTERS = {
    ("minPrice", "maxPrice"): ("price", float),
    ("minYear", "maxYear"): ("year", int),
    ("minSeats", "maxSeats"): ("seatingCapacity", int),
}


# -----------------------------
# Pagination & sorting
# -----------------------------
def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_pagination(args):
    """Return (page, limit, skip); bad or missing values fall back to defaults."""
    page = _positive_int(args.get("page"), 1)
    limit = _positive_int(args.get("limit"), current_app.config["DEFAULT_PAGE_SIZE"])
    limit = min(limit, current_app.config["MAX_PAGE_SIZE"])
    return page, limit, (page - 1) * limit


def total_pages(total, limit):
    return math.ceil(total / limit) if limit else 0


def parse_sort(args, allowed, default="createdAt"):
    field = args.get("sortBy") or default
    if field not in allowed:
        field = default
    order = 1 if args.get("order") == "asc" else -1
    # _id breaks ties so pages never overlap
    return {field: order, "_id": order}


# -----------------------------
# Filters
# -----------------------------
def contains(text):
    return re.compile(re.escape(text), re.IGNORECASE)


def equals_ignore_case(text):
    return re.compile("^" + re.escape(text) + "$", re.IGNORECASE)


def _number(args, name, cast):
    expected = "a whole number" if cast is int else "a number"
    try:
        value = cast(args[name])
    except (TypeError, ValueError):
        raise ApiError(400, f"{name} must be {expected}")
    if not math.isfinite(value):
        raise ApiError(400, f"{name} must be {expected}")
    return value


def parse_date(value, name):
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise ApiError(400, f"{name} must be a valid date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def build_car_match(args):
    match = {}

    search = args.get("search")
    if search:
        pattern = contains(search)
        match["$or"] = [{field: pattern} for field in CAR_SEARCH_FIELDS]

    for field in CAR_EXACT_FILTERS:
        if args.get(field):
            match[field] = equals_ignore_case(args[field])

    if args.get("isAvailable") is not None:
        match["isAvailable"] = args.get("isAvailable") == "true"

    for (low, high), (field, cast) in CAR_RANGE_FILTERS.items():
        bounds = {}
        if args.get(low):
            bounds["$gte"] = _number(args, low, cast)
        if args.get(high):
            bounds["$lte"] = _number(args, high, cast)
        if bounds:
            match[field] = bounds

    # ?features=sunroof,bluetooth must match ALL listed features
    if args.get("features"):
        features = [f.strip() for f in args["features"].split(",") if f.strip()]
        if features:
            match["features"] = {"$all": features}

    return match


def build_booking_match(args):
    match = {}
    if args.get("status"):
        match["status"] = args["status"]

    # Date range applies to the booking start date
    bounds = {}
    if args.get("startDate"):
        bounds["$gte"] = parse_date(args["startDate"], "startDate")
    if args.get("endDate"):
        bounds["$lte"] = parse_date(args["endDate"], "endDate")
    if bounds:
        match["startDate"] = bounds
    return match


# -----------------------------
# Aggregation
# -----------------------------
def facet_pipeline(match, sort, skip, limit, stages=()):
    """Filter once, then page the data and count the total in one round trip."""
    return [
        {"$match": match},
        {"$facet": {
            "data": [{"$sort": sort}, {"$skip": skip}, {"$limit": limit}, *stages],
            "meta": [{"$count": "total"}],
        }},
    ]


def unpack_facet(result):
    result = list(result)
    facet = result[0] if result else {}
    meta = facet.get("meta") or []
    total = meta[0]["total"] if meta else 0
    return facet.get("data", []), total
