"""
Master Ball variant eligibility.

- 151 (EN sv03.5, JP SV2a): every card 001-151 has a Master Ball version.
- Terastal Festival ex (JP SV8a): main set 001-187, standard Pokémon only (not ex).
- Prismatic Evolutions (EN sv08.5): only selected card numbers.

The first rule whose set ids contain the requested set decides the
outcome; later rules for the same set are never consulted.
"""

import re
from collections.abc import Sequence
from typing import Protocol, assert_never

from binderkeep.models.collection import CardVariant
from binderkeep.models.variant_rule import ListRule, RangeRule, VariantRule

MASTER_BALL_RULES: tuple[VariantRule, ...] = (
    RangeRule(set_ids=("sv03.5", "SV2a"), min=1, max=151),
    RangeRule(set_ids=("SV8a",), min=1, max=187, exclude_ex=True),
    ListRule(
        set_ids=("sv08.5",),
        numbers=frozenset({5, 6, 19, 35, 47, 61, 63, 72, 74, 75, 76, 77, 78, 79, 80, 81, 82}),
    ),
)

_EX_SUFFIX = re.compile(r"\s+ex$", re.IGNORECASE)


class NamedCard(Protocol):
    name: str | None


def parse_local_number(local_number: str | None) -> int | None:
    """
    Parse a card's local number as an unsigned integer.

    Leading zeros are ignored ("007" -> 7, "000" -> 0). Anything that is not
    all digits, including the empty string, yields None.
    """
    if not local_number:
        return None
    digits = local_number.lstrip("0") or "0"
    if not digits.isascii() or not digits.isdigit():
        return None
    return int(digits)


def _card_name(card: NamedCard | dict | str | None) -> str:
    if card is None:
        return ""
    if isinstance(card, str):
        return card
    if isinstance(card, dict):
        return str(card.get("name") or "")
    return card.name or ""


def is_ex_card(card: NamedCard | dict | str | None) -> bool:
    """True if the card's name ends with ' ex' (e.g. 'Pidgeot ex')."""
    return bool(_EX_SUFFIX.search(_card_name(card).strip()))


def _rule_matches(rule: VariantRule, number: int, card: NamedCard | dict | str | None) -> bool:
    if isinstance(rule, RangeRule):
        if not rule.min <= number <= rule.max:
            return False
        return not (rule.exclude_ex and is_ex_card(card))
    if isinstance(rule, ListRule):
        return number in rule.numbers
    assert_never(rule)


def is_eligible(
    set_id: str,
    local_number: str | None,
    card: NamedCard | dict | str | None = None,
    rules: Sequence[VariantRule] = MASTER_BALL_RULES,
) -> bool:
    """
    Return True if this card has the bonus variant.

    Args:
        set_id: Catalog set id, matched case-sensitively
        local_number: Card number within the set, e.g. "042"
        card: Card (or its name) for name-based exclusions
        rules: Ordered rule table
    """
    number = parse_local_number(local_number)
    if number is None:
        return False

    for rule in rules:
        if set_id in rule.set_ids:
            return _rule_matches(rule, number, card)

    return False


def augment(
    variants: Sequence[CardVariant],
    set_id: str,
    local_number: str | None,
    card: NamedCard | dict | str | None = None,
    rules: Sequence[VariantRule] = MASTER_BALL_RULES,
) -> list[CardVariant]:
    """
    Return a copy of `variants` with MASTER_BALL appended when eligible.

    The input is never mutated and the marker is never duplicated.
    """
    result = list(variants)
    if CardVariant.MASTER_BALL not in result and is_eligible(set_id, local_number, card, rules):
        result.append(CardVariant.MASTER_BALL)
    return result
