"""Case conversion applied to field names when deriving implicit symbol names.

Only existing `_` boundaries split words; mixed case is never inspected.
"""
from __future__ import annotations

import string
from enum import Enum

_TO_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_TO_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def ascii_upper(value: str) -> str:
    return value.translate(_TO_UPPER)


def ascii_lower(value: str) -> str:
    return value.translate(_TO_LOWER)


class CaseRule(Enum):
    NONE = ""
    LOWER_CASE = "lowercase"
    UPPER_CASE = "UPPERCASE"
    PASCAL_CASE = "PascalCase"
    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"

    @classmethod
    def parse(cls, text: str) -> CaseRule:
        for rule in cls:
            if rule is not cls.NONE and rule.value == text:
                return rule
        expected = ", ".join(f'"{name}"' for name in RULE_NAMES)
        raise ValueError(f'unknown rename rule `rename = "{text}"`, expected one of {expected}')

    def apply(self, field: str) -> str:
        if self in (CaseRule.NONE, CaseRule.SNAKE_CASE):
            return field
        if self is CaseRule.LOWER_CASE:
            return ascii_lower(field)
        if self in (CaseRule.UPPER_CASE, CaseRule.SCREAMING_SNAKE_CASE):
            return ascii_upper(field)
        if self is CaseRule.PASCAL_CASE:
            pascal: list[str] = []
            capitalize = True
            for ch in field:
                if ch == "_":
                    capitalize = True
                elif capitalize:
                    pascal.append(ascii_upper(ch))
                    capitalize = False
                else:
                    pascal.append(ch)
            return "".join(pascal)
        pascal_text = CaseRule.PASCAL_CASE.apply(field)
        return ascii_lower(pascal_text[:1]) + pascal_text[1:]

    def or_(self, other: CaseRule) -> CaseRule:
        """Return this rule unless it is NONE, `other` otherwise."""
        if self is CaseRule.NONE:
            return other
        return self


RULE_NAMES: tuple[str, ...] = tuple(rule.value for rule in CaseRule if rule is not CaseRule.NONE)


def apply(rule: CaseRule, field_name: str) -> str:
    return rule.apply(field_name)
