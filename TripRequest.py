import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from dataclasses_json import config, dataclass_json


class TripRequestError(ValueError):
    """Raised when a trip-generation payload is missing or violates a field rule."""


class BudgetCategory(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return list(BudgetCategory).index(self)


# Upper bound (inclusive) of each tier; anything above the last bound is HIGH.
BUDGET_THRESHOLDS = ((2000, BudgetCategory.LOW), (6000, BudgetCategory.MEDIUM))

# Share of the total budget spread over the days of the trip, per tier.
DAILY_BUDGET_FRACTION = {
    BudgetCategory.LOW: 0.80,
    BudgetCategory.MEDIUM: 0.85,
    BudgetCategory.HIGH: 0.90,
}

REQUIRED_FIELDS = ("origin", "destination", "start_date", "end_date", "budget", "adults")


def budget_category(budget: float) -> BudgetCategory:
    for upper, category in BUDGET_THRESHOLDS:
        if budget <= upper:
            return category
    return BudgetCategory.HIGH


def daily_budget(budget: float, days: int, category: BudgetCategory) -> int:
    """Per-day spending figure: the tier's share of the budget divided by the day count."""
    return int(budget / max(days, 1) * DAILY_BUDGET_FRACTION[category])


def parse_children_ages(raw) -> list[int]:
    """Parse "3, 7, 12" into [3, 7, 12], dropping anything that is not an age 0-17."""
    if not raw:
        return []
    parts = raw if isinstance(raw, (list, tuple)) else str(raw).split(",")
    ages = []
    for part in parts:
        try:
            age = int(str(part).strip())
        except ValueError:
            continue
        if 0 <= age <= 17:
            ages.append(age)
    return ages


def _is_blank(value) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return not value


def _parse_date(value, name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise TripRequestError(f"{name} must be an ISO date (YYYY-MM-DD)")


_iso_date = config(encoder=date.isoformat, decoder=date.fromisoformat)


@dataclass_json
@dataclass
class TripRequest:
    origin: str
    destination: str
    start_date: date = field(metadata=_iso_date)
    end_date: date = field(metadata=_iso_date)
    budget: float
    adults: int
    children_ages: list[int] = field(default_factory=list)
    title: str = ""
    budget_category_override: Optional[BudgetCategory] = None
    travel_style: str = ""
    transport_preference: str = ""
    accommodation_preference: str = ""
    dietary_restrictions: str = ""
    accessibility: str = ""
    special_notes: str = ""
    interests: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict) -> "TripRequest":
        """Build a validated request from the snake_case endpoint payload."""
        missing = [name for name in REQUIRED_FIELDS if _is_blank(payload.get(name))]
        if missing:
            raise TripRequestError(f"Missing required trip fields: {', '.join(missing)}")

        start = _parse_date(payload["start_date"], "start_date")
        end = _parse_date(payload["end_date"], "end_date")
        if end <= start:
            raise TripRequestError("end_date must be after start_date")

        try:
            budget = float(payload["budget"])
            adults = int(payload["adults"])
        except (TypeError, ValueError):
            raise TripRequestError("budget and adults must be numbers")
        if not math.isfinite(budget) or budget <= 0:
            raise TripRequestError("budget must be a finite number greater than zero")
        if adults < 1:
            raise TripRequestError("at least one adult traveler is required")

        override = payload.get("budget_category")
        if override:
            try:
                override = BudgetCategory(str(override).lower())
            except ValueError:
                raise TripRequestError("budget_category must be one of low, medium, high")

        return cls(
            origin=payload["origin"].strip(),
            destination=payload["destination"].strip(),
            start_date=start,
            end_date=end,
            budget=budget,
            adults=adults,
            children_ages=parse_children_ages(payload.get("children_ages")),
            title=payload.get("title") or "",
            budget_category_override=override or None,
            travel_style=payload.get("travel_style") or "",
            transport_preference=payload.get("transport_preference") or "",
            accommodation_preference=payload.get("accommodation_preference") or "",
            dietary_restrictions=payload.get("dietary_restrictions") or "",
            accessibility=payload.get("accessibility") or "",
            special_notes=payload.get("special_notes") or "",
            interests=[str(tag) for tag in payload.get("interests") or []],
        )

    def day_count(self) -> int:
        """Number of itinerary days, counting both the start and the end date."""
        return (self.end_date - self.start_date).days + 1

    def budget_category(self) -> BudgetCategory:
        return self.budget_category_override or budget_category(self.budget)

    def daily_budget(self) -> int:
        return daily_budget(self.budget, self.day_count(), self.budget_category())

    def traveler_summary(self) -> str:
        summary = f"{self.adults} adult(s)"
        if self.children_ages:
            ages = ", ".join(str(age) for age in self.children_ages)
            summary += f" and {len(self.children_ages)} child(ren) (ages {ages})"
        return summary
