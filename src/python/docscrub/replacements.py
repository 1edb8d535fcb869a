"""
Replacement strategies.

Every strategy exposes a `name` and `replace(match) -> str`. The
OrganizationCodeRemovalStrategy additionally collects the organization codes it
masks; that collection feeds the second pass of a two-pass run.
"""

from typing import Callable, FrozenSet, Optional, Set

from .matches import Match

DELIMITER = "."
MASK_CHAR = "*"


def extract_code(designation: Optional[str]) -> Optional[str]:
    """Return the organization code (text before the first dot), or None."""
    if not designation:
        return None
    dot = designation.find(DELIMITER)
    return None if dot <= 0 else designation[:dot]


def _split_point(value: str) -> int:
    """Index of the delimiter when it has text on both sides, else -1."""
    dot = value.find(DELIMITER)
    if dot <= 0 or dot >= len(value) - 1:
        return -1
    return dot


class RemoveReplacementStrategy:
    name = "Remove"

    def replace(self, match: Match) -> str:
        return ""


class MaskReplacementStrategy:
    name = "Mask"

    def __init__(self, mask_char: str = MASK_CHAR):
        if not mask_char or len(mask_char) != 1:
            raise ValueError("mask_char must be a single character")
        self.mask_char = mask_char

    def replace(self, match: Match) -> str:
        return self.mask_char * match.length


class ConstantReplacementStrategy:
    def __init__(self, name: str, replacement: Optional[str]):
        if not name:
            raise ValueError("Strategy name must not be empty")
        self.name = name
        self.replacement = replacement or ""

    def replace(self, match: Match) -> str:
        return self.replacement


class TransformReplacementStrategy:
    def __init__(self, name: str, transformer: Callable[[Match], str]):
        if not name:
            raise ValueError("Strategy name must not be empty")
        if not callable(transformer):
            raise TypeError("transformer must be callable")
        self.name = name
        self._transformer = transformer

    def replace(self, match: Match) -> str:
        return self._transformer(match)


class DecimalDesignationReplacementStrategy:
    """Drops the organization code and its dot: "ABC.123" -> "123"."""

    name = "DecimalDesignation"

    def replace(self, match: Match) -> str:
        value = match.value
        dot = _split_point(value)
        if dot < 0:
            return value
        return value[dot + 1:]


class OrganizationCodeRemovalStrategy:
    """
    Masks the organization code of a designation and remembers it.

    "ABC.01.02.003" becomes "***.01.02.003" and "ABC" is added to the
    extracted codes. The collection is never reset implicitly; callers that
    process several documents must call clear_extracted_codes() in between.
    """

    name = "OrganizationCodeRemoval"

    def __init__(self, mask_char: str = MASK_CHAR):
        self.mask_char = mask_char
        self._extracted_codes: Set[str] = set()

    def replace(self, match: Match) -> str:
        value = match.value
        if _split_point(value) < 0:
            return value
        code = extract_code(value)
        if not code:
            return value
        self._extracted_codes.add(code)
        return value.replace(code, self.mask_char * len(code))

    def get_extracted_codes(self) -> FrozenSet[str]:
        return frozenset(self._extracted_codes)

    def clear_extracted_codes(self) -> None:
        self._extracted_codes.clear()


class CompositeReplacementStrategy:
    """Dispatches to one of two strategies depending on a predicate over the match."""

    def __init__(self, name: str, condition: Callable[[Match], bool], when_true, when_false):
        if not name:
            raise ValueError("Strategy name must not be empty")
        if not callable(condition):
            raise TypeError("condition must be callable")
        for strategy in (when_true, when_false):
            if strategy is None or not callable(getattr(strategy, "replace", None)):
                raise TypeError("Composite branches must provide replace(match)")
        self.name = name
        self._condition = condition
        self.when_true = when_true
        self.when_false = when_false

    def replace(self, match: Match) -> str:
        if self._condition(match):
            return self.when_true.replace(match)
        return self.when_false.replace(match)


def is_designation(match: Match) -> bool:
    return "Designation" in match.match_type
