"""
Typography Normalizer

Rewrites manuscript punctuation according to a typography profile:

1. Generic rules (always, in order): hyphen runs between words become an
   unspaced em dash, hyphen runs with whitespace on both sides become a
   spaced em dash (also at the start or end of a line), and three periods
   become an ellipsis.
2. Profile rules: locale quote styles and dash restyling (HU, DE, EN) or
   scene-break markers (Shunn).

The profile -> rule list mapping lives in rules/typography_profiles.yml, so
a new profile is a data change. Unknown profiles fall back to the generic
rules only; they are never an error.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional, Union
import logging

from manusmith.rules.load_rules import RuleTable, load_rule_table

logger = logging.getLogger(__name__)


class TypographyProfile(str, Enum):
    HU = "HU"
    DE = "DE"
    EN = "EN"
    SHUNN = "Shunn"
    NONE = "None"

    @classmethod
    def parse(cls, value: Union["TypographyProfile", str, None]) -> "TypographyProfile":
        """Lenient lookup: exact value first, then case-insensitive, else NONE."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.NONE
        name = str(value).strip()
        for p in cls:
            if p.value == name:
                return p
        for p in cls:
            if p.value.lower() == name.lower():
                return p
        logger.debug("Unknown typography profile %r, applying generic rules only", value)
        return cls.NONE


def normalize(
    text: Optional[str],
    profile: Union[TypographyProfile, str, None] = TypographyProfile.NONE,
    table: Optional[RuleTable] = None,
) -> Optional[str]:
    """
    Normalize manuscript punctuation.

    Args:
        text: Input text. None is returned unchanged.
        profile: A TypographyProfile or its name ("HU", "DE", "EN", "Shunn").
        table: Rule table to use (defaults to the bundled rule pack)

    Returns:
        The normalized text. Same input always yields the same output.
    """
    if text is None:
        return None
    table = table or load_rule_table()
    prof = TypographyProfile.parse(profile)
    for rule in table.rules_for(prof.value):
        text = rule.apply(text)
    return text
