from typing import Optional
import datetime

# Deadlines closer than this (in days) saturate urgency.
SATURATION_DAYS = 1.5
SATURATED_URGENCY = 200.0
# Scale for the inverse-days curve beyond the saturation point.
URGENCY_SCALE = 50.0
# Floor applied to days-until-due so overdue tasks never produce negative
# or infinite urgency.
MIN_DAYS_UNTIL_DUE = 0.1
STRESS_WEIGHT = 0.6

SECONDS_PER_DAY = 86400.0


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def days_until_due(
    due_date: Optional[datetime.date],
    now: Optional[datetime.datetime] = None,
) -> Optional[float]:
    """
    Fractional days from ``now`` until the start (00:00 UTC) of ``due_date``,
    floored at MIN_DAYS_UNTIL_DUE. Returns None when there is no due date.
    """
    if due_date is None:
        return None
    if now is None:
        now = _utc_now()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)

    due_at = datetime.datetime.combine(
        due_date, datetime.time.min, tzinfo=datetime.timezone.utc
    )
    days = (due_at - now).total_seconds() / SECONDS_PER_DAY
    return max(MIN_DAYS_UNTIL_DUE, days)


def compute_urgency(
    due_date: Optional[datetime.date],
    now: Optional[datetime.datetime] = None,
) -> float:
    """
    Deadline urgency on an open scale.

    Due within SATURATION_DAYS (or overdue) -> 200.
    Further out -> 50 / days, so 5 days is 10 and 50 days is 1.
    No due date -> 0, which sinks the task unless its stress dominates.
    """
    days = days_until_due(due_date, now)
    if days is None:
        return 0.0
    if days <= SATURATION_DAYS:
        return SATURATED_URGENCY
    return (1.0 / days) * URGENCY_SCALE


def compute_priority_score(
    stress_score: int,
    due_date: Optional[datetime.date],
    now: Optional[datetime.datetime] = None,
) -> float:
    return stress_score * STRESS_WEIGHT + compute_urgency(due_date, now)
