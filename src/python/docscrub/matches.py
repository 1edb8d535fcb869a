from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Match:
    """One located fragment of interest in a container's logical text."""
    value: str
    start: int
    length: int
    match_type: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Match start must be >= 0, got {self.start}")
        if self.length <= 0:
            raise ValueError(f"Match length must be > 0, got {self.length}")

    @property
    def end(self) -> int:
        return self.start + self.length


def find_all_matches(text: str, config) -> List[Match]:
    """
    Run every search strategy of `config` over `text`.

    Results are concatenated in strategy order; matches shorter than
    options.min_match_length are dropped. Overlaps between strategies are kept.
    """
    if not text:
        return []
    min_len = config.options.min_match_length
    out: List[Match] = []
    for strategy in config.search_strategies:
        for m in strategy.find_matches(text):
            if m.length < min_len:
                continue
            out.append(m)
    return out
