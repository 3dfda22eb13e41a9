"""
Option-group selection validation and pricing.

A menu item may carry option groups ("Size", "Extras"); the customer picks
options per group. Before an item can go into an order the selection must
pass validate_selection(): required groups satisfied, max_selections
respected, options known and available. Price modifiers are tax-inclusive
and add to the item's unit price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..money import cents_to_decimal, money_float, to_decimal


class CustomizationError(ValueError):
    """Raised when a selection does not satisfy the item's option groups."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class Option:
    id: int
    name: str
    price_modifier: Decimal = Decimal("0")
    available: bool = True


@dataclass(frozen=True)
class OptionGroup:
    id: int
    name: str
    required: bool = False
    max_selections: int = 1
    options: tuple[Option, ...] = ()

    def option(self, option_id: int) -> Option | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


# group_id -> chosen option ids
SelectedOptions = dict[int, set[int]]


@dataclass
class PricedSelection:
    price_modifier: Decimal = Decimal("0")
    choices: list[dict] = field(default_factory=list)

    def describe(self) -> str | None:
        """Snapshot text stored on the order item, e.g. "Size: Large (+€1.50); Extras: Bacon"."""
        if not self.choices:
            return None
        parts = []
        for choice in self.choices:
            text = f"{choice['group']}: {choice['option']}"
            modifier = to_decimal(choice["price_modifier"])
            if modifier:
                text += f" (+€{modifier:.2f})" if modifier > 0 else f" (-€{-modifier:.2f})"
            parts.append(text)
        return "; ".join(parts)


def groups_from_models(option_groups) -> list[OptionGroup]:
    """Convert MenuItemOptionGroup rows into value objects."""
    return [
        OptionGroup(
            id=group.id,
            name=group.name,
            required=bool(group.required),
            max_selections=int(group.max_selections or 1),
            options=tuple(
                Option(
                    id=option.id,
                    name=option.name,
                    price_modifier=cents_to_decimal(option.price_modifier_cents or 0),
                    available=bool(option.is_available),
                )
                for option in group.options
            ),
        )
        for group in option_groups
    ]


def parse_selected_options(raw) -> SelectedOptions:
    """
    Accept {"<group_id>": [option_id, ...]} (JSON keys are strings) and
    normalize to {int: set[int]}.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise CustomizationError("selected_options must be an object of group_id -> option ids")
    selected: SelectedOptions = {}
    for group_id, option_ids in raw.items():
        if isinstance(option_ids, (int, str)):
            option_ids = [option_ids]
        try:
            selected[int(group_id)] = {int(option_id) for option_id in option_ids}
        except (TypeError, ValueError):
            raise CustomizationError("selected_options ids must be integers")
    return selected


def validate_selection(groups: list[OptionGroup], selected: SelectedOptions) -> None:
    problems = []
    by_id = {group.id: group for group in groups}

    for group_id in selected:
        if group_id not in by_id:
            problems.append({"group_id": group_id, "reason": "unknown option group"})

    for group in groups:
        chosen = selected.get(group.id, set())
        if group.required and not chosen:
            problems.append({"group_id": group.id, "group": group.name, "reason": "selection required"})
        if len(chosen) > group.max_selections:
            problems.append({
                "group_id": group.id,
                "group": group.name,
                "reason": f"at most {group.max_selections} selection(s) allowed",
            })
        for option_id in sorted(chosen):
            option = group.option(option_id)
            if option is None:
                problems.append({"group_id": group.id, "option_id": option_id, "reason": "unknown option"})
            elif not option.available:
                problems.append({"group_id": group.id, "option_id": option_id, "reason": "option unavailable"})

    if problems:
        raise CustomizationError("Invalid option selection", details={"problems": problems})


def price_selection(groups: list[OptionGroup], selected: SelectedOptions) -> PricedSelection:
    """Validate the selection, then total its price modifiers in group order."""
    validate_selection(groups, selected)

    priced = PricedSelection()
    for group in groups:
        for option_id in sorted(selected.get(group.id, set())):
            option = group.option(option_id)
            priced.price_modifier += option.price_modifier
            priced.choices.append({
                "group_id": group.id,
                "group": group.name,
                "option_id": option.id,
                "option": option.name,
                "price_modifier": money_float(option.price_modifier),
            })
    return priced
