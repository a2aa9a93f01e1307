"""
Bonus-variant eligibility rules.

A rule is scoped to one or more set ids and is either a numeric range over
the card's local number or an explicit list of numbers.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RangeRule:
    """
    Eligible when min <= number <= max.

    Attributes:
        set_ids: Set ids this rule applies to (case-sensitive)
        min: Lowest eligible local number
        max: Highest eligible local number
        exclude_ex: When True, cards named "... ex" are not eligible
    """

    set_ids: tuple[str, ...]
    min: int
    max: int
    exclude_ex: bool = False


@dataclass(frozen=True, slots=True)
class ListRule:
    """Eligible when the local number is one of `numbers`."""

    set_ids: tuple[str, ...]
    numbers: frozenset[int]


VariantRule = RangeRule | ListRule
