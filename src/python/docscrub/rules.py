import os
import regex as re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from .matches import Match

# Upper-case letters allowed in organization codes (Latin and Cyrillic)
_UPPER = "A-ZА-ЯЁ"

# Decimal designations: ORG.NN.NN.NNN with optional "ТУ" suffix and one trailing punctuation mark
FULL_DESIGNATION = (
    rf"(?=[{_UPPER}0-9-]*[{_UPPER}])[{_UPPER}0-9-]+\."
    r"(?:[0-9]{2}\.){2,}[0-9]{3}(?:ТУ)?[.,;:!?\-]?"
)
SHORT_DESIGNATION = (
    rf"(?=[{_UPPER}0-9-]*[{_UPPER}])[{_UPPER}0-9-]+-[{_UPPER}0-9-]+\."
    r"[0-9]{3}(?:ТУ)?[.,;:!?\-]?\b"
)
MINIMAL_DESIGNATION = (
    rf"(?=[{_UPPER}0-9-]*[{_UPPER}])[{_UPPER}0-9]+\."
    r"[0-9]{2}\.[0-9]{3}(?:ТУ)?[.,;:!?\-]?\b"
)

# Person names: "Иванов И. И." and "И. И. Иванов"
SURNAME_FIRST = r"[А-ЯЁ][а-яё]+\s[А-ЯЁ]\.\s?[А-ЯЁ]\."
INITIALS_FIRST = r"[А-ЯЁ]\.\s?[А-ЯЁ]\.\s?[А-ЯЁ][а-яё]+"

EMAIL = r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"

# Russian phone numbers: +7 / 8 prefix, optional brackets and separators
RUSSIAN_PHONE = r"(?:\+7|8)[\s-]?\(?[0-9]{3}\)?[\s-]?[0-9]{3}[\s-]?[0-9]{2}[\s-]?[0-9]{2}"

ORGANIZATION_CODE = "OrganizationCode"

_RULE_FILTER_ENV = "DOCSCRUB_RULE_FILTER"
_RULE_FILTER_CACHE: Dict[str, Optional[Set[str]]] = {"raw": None, "names": None}


@dataclass(frozen=True)
class NamedPattern:
    """A regular expression with a name used as the match type."""
    name: str
    source: str
    flags: int = 0

    def __post_init__(self):
        if not self.name:
            raise ValueError("Pattern name must not be empty")
        if self.source is None:
            raise ValueError(f"Pattern '{self.name}' has no source")

    @property
    def regex(self):
        return re.compile(self.source, self.flags)


class PatternSearchStrategy:
    """
    Search strategy backed by an ordered list of named patterns.

    A literal value reported by one pattern is not reported again by a later
    pattern, so overlapping patterns never produce the same text twice. Repeats
    found by the same pattern are all reported.
    """

    def __init__(self, name: str, *patterns: NamedPattern):
        if not name:
            raise ValueError("Strategy name must not be empty")
        if not patterns:
            raise ValueError(f"Strategy '{name}' needs at least one pattern")
        for p in patterns:
            if not isinstance(p, NamedPattern):
                raise TypeError(f"Expected NamedPattern, got {type(p).__name__}")
        self.name = name
        self.patterns = list(patterns)
        self._compiled = [(p, p.regex) for p in self.patterns]

    def find_matches(self, text: str) -> List[Match]:
        if not text:
            return []
        earlier: Set[str] = set()
        out: List[Match] = []
        for pattern, rx in self._compiled:
            emitted: Set[str] = set()
            for m in rx.finditer(text):
                s, e = m.span()
                if s == e:
                    continue
                value = m.group(0)
                if value in earlier:
                    continue
                emitted.add(value)
                out.append(Match(
                    value=value, start=s, length=e - s, match_type=pattern.name,
                    metadata={"pattern": pattern.source, "pattern_name": pattern.name},
                ))
            earlier |= emitted
        return out

    def __repr__(self):
        return f"PatternSearchStrategy({self.name!r}, {len(self.patterns)} patterns)"


class ExactValueSearchStrategy:
    """Finds standalone occurrences of known organization codes."""

    name = "OrganizationCodes"

    def __init__(self, codes: Optional[Iterable[str]] = None, case_sensitive: bool = True):
        self.case_sensitive = case_sensitive
        self._codes: Set[str] = set()
        self.add_codes(codes or ())

    @property
    def codes(self) -> frozenset:
        return frozenset(self._codes)

    def add_codes(self, codes: Iterable[str]) -> None:
        for code in codes:
            if code:
                self._codes.add(code)

    @staticmethod
    def _is_boundary(text: str, start: int, end: int) -> bool:
        if start > 0 and text[start - 1].isalnum():
            return False
        # A trailing "." is allowed: codes are usually followed by a dotted qualifier
        if end < len(text):
            nxt = text[end]
            if nxt.isalnum() and nxt != ".":
                return False
        return True

    def find_matches(self, text: str) -> List[Match]:
        if not text or not self._codes:
            return []
        flags = 0 if self.case_sensitive else re.IGNORECASE
        out: List[Match] = []
        for code in sorted(self._codes):
            for m in re.finditer(re.escape(code), text, flags):
                s, e = m.span()
                if not self._is_boundary(text, s, e):
                    continue
                out.append(Match(
                    value=m.group(0), start=s, length=e - s, match_type=ORGANIZATION_CODE,
                    metadata={"code": code, "is_standalone_code": True},
                ))
        return out

    def __repr__(self):
        return f"ExactValueSearchStrategy({len(self._codes)} codes)"


def decimal_designations() -> PatternSearchStrategy:
    return PatternSearchStrategy(
        "DecimalDesignations",
        NamedPattern("FullDesignation", FULL_DESIGNATION),
        NamedPattern("ShortDesignation", SHORT_DESIGNATION),
        NamedPattern("MinimalDesignation", MINIMAL_DESIGNATION),
    )


def person_names() -> PatternSearchStrategy:
    return PatternSearchStrategy(
        "PersonNames",
        NamedPattern("SurnameFirst", SURNAME_FIRST),
        NamedPattern("InitialsFirst", INITIALS_FIRST),
    )


def email_addresses() -> PatternSearchStrategy:
    return PatternSearchStrategy("EmailAddresses", NamedPattern("Email", EMAIL))


def phone_numbers() -> PatternSearchStrategy:
    return PatternSearchStrategy("PhoneNumbers", NamedPattern("RussianPhone", RUSSIAN_PHONE))


BUILTIN_STRATEGIES = {
    "DecimalDesignations": decimal_designations,
    "PersonNames": person_names,
    "EmailAddresses": email_addresses,
    "PhoneNumbers": phone_numbers,
}

DEFAULT_STRATEGY_NAMES = ("DecimalDesignations", "PersonNames")


def _selected_strategy_names() -> Optional[Set[str]]:
    raw = os.environ.get(_RULE_FILTER_ENV)
    if raw == _RULE_FILTER_CACHE["raw"]:
        return _RULE_FILTER_CACHE["names"]
    if raw is None:
        names = None
    else:
        names = {token.strip().lower() for token in raw.split(",") if token.strip()}
    _RULE_FILTER_CACHE["raw"] = raw
    _RULE_FILTER_CACHE["names"] = names
    return names


def default_strategies(names: Iterable[str] = DEFAULT_STRATEGY_NAMES) -> List[PatternSearchStrategy]:
    """Build the named built-in strategies, honouring DOCSCRUB_RULE_FILTER when set."""
    selected = _selected_strategy_names()
    out = []
    for name in names:
        if name not in BUILTIN_STRATEGIES:
            raise ValueError(f"Unknown search strategy '{name}'. Known: {sorted(BUILTIN_STRATEGIES)}")
        if selected is not None and name.lower() not in selected:
            continue
        out.append(BUILTIN_STRATEGIES[name]())
    return out
