"""Vendor-to-category mapping table and the transaction classifier.

The mapping table is a static, ordered tuple of :class:`CategoryMapping`
entries evaluated top to bottom; the first mapping with a vendor substring
contained in the (lower-cased) description wins. A small table of special
cases is consulted before the mappings; each special case carries its own
amount transform and an optional warning emitted when the transform adjusts
the amount.

Exports
-------
- ``CATEGORY_MAPPINGS``: the ordered mapping table.
- ``SPECIAL_CASES``: vendor key → category + amount transform.
- ``classify(description)``: category plus the amount transform to apply.
- ``budget_field_for(category)``: the ``*_spent`` field a category feeds.
- ``SPENT_FIELDS`` / ``PLANNED_FIELDS``: budget column names, in table order.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

UNCATEGORIZED = "Uncategorized"
UNCATEGORIZED_FIELD = "uncategorized_spent"


@dataclass(frozen=True, slots=True)
class CategoryMapping:
    key: str
    display_name: str
    budget_field: str
    vendors: tuple[str, ...] = ()

    def matches(self, normalized_description: str) -> bool:
        return any(v.lower() in normalized_description for v in self.vendors)


CATEGORY_MAPPINGS: tuple[CategoryMapping, ...] = (
    CategoryMapping("rent", "Rent", "rent_spent"),
    CategoryMapping(
        "utilities",
        "Utilities",
        "utilities_spent",
        ("To An Post Tv Licence", "To SSEAirtricity", "Virgin Media Ireland Limited"),
    ),
    CategoryMapping(
        "groceries",
        "Groceries",
        "groceries_spent",
        (
            "ALDI",
            "Centra",
            "Dunnes Stores",
            "Lidl",
            "Marks & Spencer",
            "SuperValu",
            "Tesco",
            "Asia Market",
            "Avoca",
            "Lotts & Co.",
            "Moldova",
        ),
    ),
    CategoryMapping(
        "transport",
        "Transport",
        "transport_spent",
        (
            "Aircoach",
            "Citi Bus",
            "FREE NOW",
            "Irish Rail",
            "National Transport Authority",
            "Transport for Ireland - TFI",
        ),
    ),
    CategoryMapping(
        "entertainment",
        "Entertainment",
        "entertainment_spent",
        ("Aviva Stadium", "Dublin Zoo", "Ticketmaster"),
    ),
    CategoryMapping("shopping", "Shopping", "shopping_spent", ("Dealz", "Euro Giant", "RELAY")),
    CategoryMapping(
        "miscellaneous",
        "Miscellaneous",
        "miscellaneous_spent",
        (
            "An Post",
            "To EUR Holidays",
            "To TATIANI MARIA DE FARIA",
            "Sugarloaf Bakery",
            "The Source Bulk Foods",
            "Tucano",
        ),
    ),
    CategoryMapping("savings", "Savings", "savings_spent"),
    CategoryMapping(
        "dining_out",
        "Dining Out",
        "dining_out_spent",
        (
            "Bread 41",
            "Bunsen",
            "Chutni",
            "Fallon & Byrne",
            "Fresh The Good Food Market",
            "Gelato",
            "Il Forno",
            "Indian Eateries",
            "KC Peaches",
            "Oakberry",
            "Sushida Rathmines",
            "The Sugar Loaf Bakery",
            "Amuri",
        ),
    ),
    CategoryMapping(
        "health_pharmacy",
        "Health & Pharmacy",
        "health_pharmacy_spent",
        ("Aungier Street Clinic", "Boots", "DrOnline", "Hickey's Pharmacy", "LIFE Pharmacy"),
    ),
    CategoryMapping("fitness", "Fitness", "fitness_spent"),
    CategoryMapping(
        "personal_care",
        "Personal Care",
        "personal_care_spent",
        ("Fireplace Barbershop", "The Fireplace Barber Shop"),
    ),
    CategoryMapping("travel", "Travel", "travel_spent", ("Aer Lingus", "Delta Air Lines")),
    CategoryMapping(
        "education",
        "Education",
        "education_spent",
        ("South East Technological University", "Codecademy"),
    ),
    CategoryMapping(
        "takeaway_coffee",
        "Takeaway Coffee",
        "takeaway_coffee_spent",
        (
            "Starbucks",
            "Coffeeangel",
            "Clement & Pekoe",
            "Butlers Chocolates",
            "Insomnia Coffee Company",
        ),
    ),
    CategoryMapping(
        "pubs_bars",
        "Pubs & Bars",
        "pubs_bars_spent",
        (
            "Dicey's Garden Club",
            "Doyles",
            "F.X. Buckley",
            "J D Wetherspoon",
            "Paddy Cullen's Pub",
            "Searsons Bar",
            "Slattery's D4",
            "The Barge",
            "The Bath Pub",
            "The Camden",
            "The Chatty Fox",
            "The Depot At The C",
            "The Hill",
            "The Jar",
        ),
    ),
    CategoryMapping(
        "clothing_apparel",
        "Clothing & Apparel",
        "clothing_apparel_spent",
        (
            "Arnotts",
            "Cotswold Outdoor",
            "Decathlon",
            "Guineys",
            "Penneys",
            "Superdry",
            "Temu",
            "Timberland",
            "Trespass",
            "UNIQLO",
        ),
    ),
    CategoryMapping(
        "home_hardware", "Home & Hardware", "home_hardware_spent", ("Decwells Hardware", "IKEA")
    ),
    CategoryMapping(
        "online_services_subscriptions",
        "Online Services & Subscriptions",
        "online_services_subscriptions_spent",
        (
            "Amazon",
            "Amazon Prime",
            "Anthropic",
            "Daft.ie",
            "Google Cloud",
            "Gumroad",
            "Microsoft",
            "Microsoft 365",
            "OpenAI",
            "Plus plan fee",
            "Supabase",
            "Www.printables.com",
        ),
    ),
    CategoryMapping("money_transfer", "Money Transfer", "money_transfer_spent", ("Wise",)),
    CategoryMapping(
        "delivery_takeaway",
        "Delivery & Takeaway",
        "delivery_takeaway_spent",
        ("Boojum", "Deliveroo", "McDonald's", "Zaytoon"),
    ),
    CategoryMapping("uncategorized", UNCATEGORIZED, UNCATEGORIZED_FIELD),
)

_BY_DISPLAY_NAME: dict[str, CategoryMapping] = {m.display_name: m for m in CATEGORY_MAPPINGS}

SPENT_FIELDS: tuple[str, ...] = tuple(m.budget_field for m in CATEGORY_MAPPINGS)
PLANNED_FIELDS: tuple[str, ...] = tuple(
    m.key for m in CATEGORY_MAPPINGS if m.budget_field != UNCATEGORIZED_FIELD
)
DISPLAY_NAMES: tuple[str, ...] = tuple(m.display_name for m in CATEGORY_MAPPINGS)


# ---------------------------
# Amount transforms
# ---------------------------


@dataclass(frozen=True, slots=True)
class AmountAdjustment:
    amount: Decimal
    warning: str | None = None


type AmountTransform = Callable[[Decimal], AmountAdjustment]


def negate(amount: Decimal) -> AmountAdjustment:
    """Default transform: bank debits (negative) become positive spend."""

    return AmountAdjustment(-amount)


# Shared rent payment: the full transfer is split with a roommate, only the
# payer's portion counts against the budget.
SHARED_RENT_TOTAL = Decimal("-2200")
SHARED_RENT_PORTION = Decimal("1000")


def _rent_split(amount: Decimal) -> AmountAdjustment:
    if amount == SHARED_RENT_TOTAL:
        return AmountAdjustment(
            SHARED_RENT_PORTION,
            "Rent payment adjusted from 2200 to 1000 (roommate portion excluded)",
        )
    return negate(amount)


@dataclass(frozen=True, slots=True)
class SpecialCase:
    vendor: str
    category: str
    transform: AmountTransform = negate


SPECIAL_CASES: tuple[SpecialCase, ...] = (
    SpecialCase("to trading places", "Rent", _rent_split),
    SpecialCase("to eur holidays", "Savings"),
)


# ---------------------------
# Classifier
# ---------------------------


@dataclass(frozen=True, slots=True)
class Classification:
    category: str
    transform: AmountTransform = negate

    def apply(self, signed_amount: Decimal) -> AmountAdjustment:
        return self.transform(signed_amount)


def normalize_description(description: str) -> str:
    """Trim, lower-case and collapse internal whitespace."""

    return " ".join(description.strip().lower().split())


def classify(description: str) -> Classification:
    """Return the category for ``description`` and its amount transform.

    Special cases are checked first, then the mapping table in order. With no
    match the category is ``"Uncategorized"`` and the transform only negates.
    """

    normalized = normalize_description(description)
    for case in SPECIAL_CASES:
        if case.vendor in normalized:
            return Classification(case.category, case.transform)
    for mapping in CATEGORY_MAPPINGS:
        if mapping.matches(normalized):
            return Classification(mapping.display_name)
    return Classification(UNCATEGORIZED)


def budget_field_for(category: str) -> str:
    """Return the ``*_spent`` field fed by ``category``.

    Unknown categories (and ``"Uncategorized"``) feed ``uncategorized_spent``.
    """

    mapping = _BY_DISPLAY_NAME.get(category)
    return mapping.budget_field if mapping is not None else UNCATEGORIZED_FIELD


def find_vendor_collisions() -> dict[str, list[str]]:
    """Return vendor substrings listed under more than one mapping.

    Lookup stays first-match-wins regardless; this helper exists so tests and
    maintainers can keep the table unambiguous.
    """

    seen: dict[str, list[str]] = {}
    for mapping in CATEGORY_MAPPINGS:
        for vendor in mapping.vendors:
            seen.setdefault(vendor.lower(), []).append(mapping.key)
    return {v: keys for v, keys in seen.items() if len(keys) > 1}


__all__ = [
    "UNCATEGORIZED",
    "UNCATEGORIZED_FIELD",
    "CategoryMapping",
    "CATEGORY_MAPPINGS",
    "SPENT_FIELDS",
    "PLANNED_FIELDS",
    "DISPLAY_NAMES",
    "AmountAdjustment",
    "AmountTransform",
    "SpecialCase",
    "SPECIAL_CASES",
    "Classification",
    "negate",
    "normalize_description",
    "classify",
    "budget_field_for",
    "find_vendor_collisions",
]
