from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Pattern, Tuple
import re
import yaml

DEFAULT_RULE_PACK = Path(__file__).parent / "typography_profiles.yml"


@dataclass(frozen=True)
class ReplacementRule:
    id: str
    rationale: str
    search: str
    replace: str
    pattern: Pattern[str]
    literal: bool = False
    multiline: bool = False

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replace, text)


@dataclass(frozen=True)
class RuleTable:
    generic: Tuple[ReplacementRule, ...]
    profiles: Dict[str, Tuple[ReplacementRule, ...]]

    def rules_for(self, profile_name: str) -> Tuple[ReplacementRule, ...]:
        return self.generic + self.profiles.get(profile_name, ())


def load_rule_pack(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _compile_rule(r: Dict[str, Any]) -> ReplacementRule:
    literal = bool(r.get("literal", False))
    multiline = bool(r.get("multiline", False))
    search = str(r["search"])
    replace = str(r["replace"])
    flags = re.MULTILINE if multiline else 0
    if literal:
        pattern = re.compile(re.escape(search), flags)
        # the replacement of a literal rule must not be read as a template
        replace = replace.replace("\\", "\\\\")
    else:
        pattern = re.compile(search, flags)
    return ReplacementRule(
        id=r["id"],
        rationale=r.get("rationale", ""),
        search=search,
        replace=replace,
        pattern=pattern,
        literal=literal,
        multiline=multiline,
    )


def load_replacement_rules(items: List[Dict[str, Any]]) -> Tuple[ReplacementRule, ...]:
    return tuple(_compile_rule(r) for r in (items or []))


def build_rule_table(rule_pack: Dict[str, Any]) -> RuleTable:
    profiles = {
        str(name): load_replacement_rules(items)
        for name, items in (rule_pack.get("profiles") or {}).items()
    }
    return RuleTable(generic=load_replacement_rules(rule_pack.get("generic")), profiles=profiles)


@lru_cache(maxsize=None)
def load_rule_table(path: str = str(DEFAULT_RULE_PACK)) -> RuleTable:
    return build_rule_table(load_rule_pack(path))
