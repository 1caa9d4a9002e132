"""
Summary statistics over already-fetched training programs.

Every function here is pure: it reads the records it is given and returns
new dicts/lists. Records may be plain mappings (as produced by
``utils.serialization.to_dict``) or model instances.
"""
from collections.abc import Mapping
from datetime import datetime, date
from decimal import Decimal, ROUND_HALF_UP
import enum

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
CRORE = 10_000_000


def _get(record, field):
    if isinstance(record, Mapping):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def _selector(key_selector):
    if callable(key_selector):
        return key_selector
    return lambda record: _get(record, key_selector)


def _fixed(value, places):
    # Round half up on the exact binary value, same as Number.toFixed.
    exponent = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def _as_datetime(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return None


def group_count(records, key_selector):
    """
    Count records per key. Keys appear in order of first occurrence.

    key_selector: a callable taking a record, or a field name.
    """
    select = _selector(key_selector)
    counts = {}
    for record in records:
        key = select(record)
        if isinstance(key, enum.Enum):
            key = key.value
        counts[key] = counts.get(key, 0) + 1
    return counts


def group_count_multi(records, multi_key_selector):
    """
    Like group_count, but a record contributes once to every key it yields,
    so the counts may add up to more than len(records).
    """
    select = _selector(multi_key_selector)
    counts = {}
    for record in records:
        for key in select(record) or ():
            if isinstance(key, enum.Enum):
                key = key.value
            counts[key] = counts.get(key, 0) + 1
    return counts


def count_by_status(records):
    # statuses without records are absent, not zero
    return group_count(records, "status")


def sum_participants(records):
    actual_total = 0
    target_total = 0
    for record in records:
        actual_total += _get(record, "actual_participants") or 0
        target_total += _get(record, "target_participants") or 0
    return {"actual_total": actual_total, "target_total": target_total}


def participation_rate(totals):
    """
    actual_total / target_total * 100, one decimal. 0 when there is no
    target at all.
    """
    target_total = totals.get("target_total") or 0
    if target_total == 0:
        return Decimal(0)
    return _fixed((totals.get("actual_total") or 0) / target_total * 100, 1)


def states_covered(records):
    return len({_get(record, "state") for record in records})


def month_label(value):
    moment = _as_datetime(value)
    if moment is None:
        return None
    return f"{MONTH_ABBREVIATIONS[moment.month - 1]} {moment.year:04d}"


def monthly_trend(records):
    """Programs per "<Mon> <YYYY>" of start_date, in first-seen order."""
    return group_count(records, lambda record: month_label(_get(record, "start_date")))


def chronological(monthly):
    """Reorder a monthly_trend mapping oldest month first."""
    def sort_key(item):
        name, year = item[0].split(" ")
        return int(year), MONTH_ABBREVIATIONS.index(name)

    return dict(sorted(((k, v) for k, v in monthly.items() if k), key=sort_key))


def top_n_by_count(mapping, n):
    # sorted() is stable, so equal counts keep the mapping's order
    ranked = sorted(mapping.items(), key=lambda item: item[1], reverse=True)
    return ranked[:max(n, 0)]


def budget_total(records):
    return sum((_get(record, "budget") or 0) for record in records)


def completion_rate(records):
    records = list(records)
    if not records:
        return 0
    completed = count_by_status(records).get("completed", 0)
    return int(_fixed(completed / len(records) * 100, 0))


def format_crore(value):
    return f"₹{_fixed((value or 0) / CRORE, 1)}Cr"


def format_percent(value):
    return f"{_fixed(value or 0, 1)}%"


def summarize(records, top_states=10):
    """Everything the analytics dashboard shows, in one payload."""
    records = list(records)
    by_status = count_by_status(records)
    participants = sum_participants(records)
    rate = participation_rate(participants)
    budget = budget_total(records)
    by_state = group_count(records, "state")

    return {
        "total_trainings": len(records),
        "status_counts": by_status,
        "planned": by_status.get("planned", 0),
        "ongoing": by_status.get("ongoing", 0),
        "completed": by_status.get("completed", 0),
        "cancelled": by_status.get("cancelled", 0),
        "completion_rate": completion_rate(records),
        "participants": participants,
        "participation_rate": rate,
        "participation_rate_display": format_percent(rate),
        "states_covered": states_covered(records),
        "budget_total": budget,
        "budget_display": format_crore(budget),
        "trainings_by_type": group_count(records, "training_type"),
        "disaster_type_counts": group_count_multi(records, "disaster_types"),
        "trainings_by_state": by_state,
        "top_states": [
            {"state": state, "count": count}
            for state, count in top_n_by_count(by_state, top_states)
        ],
        "monthly_trend": monthly_trend(records),
    }
