"""
Fragment map and splice engine.

A container's logical text is the concatenation of its fragments (runs, property
values, ...). Matches are located in that logical text and written back here,
possibly across several fragments. The engine borrows fragments for one container
pass; the owning document structure keeps them.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .matches import Match


class Fragment:
    """Minimal mutation surface of one physical text unit."""

    removed = False

    def get_content(self) -> str:
        raise NotImplementedError

    def set_content(self, text: str) -> None:
        raise NotImplementedError

    def remove_owning_unit(self) -> None:
        raise NotImplementedError


class TextFragment(Fragment):
    """In-memory fragment owned by a TextContainer."""

    def __init__(self, text: str = "", owner: Optional["TextContainer"] = None):
        self._text = text or ""
        self.owner = owner

    def get_content(self) -> str:
        return self._text

    def set_content(self, text: str) -> None:
        self._text = text or ""

    def remove_owning_unit(self) -> None:
        if self.owner is not None and self in self.owner.fragments:
            self.owner.fragments.remove(self)
        self._text = ""
        self.removed = True

    def __repr__(self):
        return f"TextFragment({self._text!r})"


class TextContainer:
    """A plain list of TextFragments, used for free-standing text values."""

    def __init__(self, pieces: Iterable[str] = ()):
        self.fragments: List[TextFragment] = []
        for piece in pieces:
            self.fragments.append(TextFragment(piece, owner=self))

    @property
    def text(self) -> str:
        return collect_text(self.fragments)

    def contents(self) -> List[str]:
        return [f.get_content() for f in self.fragments]


@dataclass
class FragmentMapEntry:
    fragment: Fragment
    start: int
    length: int
    content: str

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass
class SpliceResult:
    success: bool
    fragments_modified: int = 0
    error: Optional[str] = None


def live_fragments(fragments: Sequence[Fragment]) -> List[Fragment]:
    return [f for f in fragments if not getattr(f, "removed", False)]


def collect_text(fragments: Iterable[Fragment]) -> str:
    return "".join(f.get_content() or "" for f in fragments)


def map_fragments(fragments: Iterable[Fragment]) -> List[FragmentMapEntry]:
    fmap: List[FragmentMapEntry] = []
    pos = 0
    for f in fragments:
        content = f.get_content() or ""
        fmap.append(FragmentMapEntry(fragment=f, start=pos, length=len(content), content=content))
        pos += len(content)
    return fmap


def _write_back(entry: FragmentMapEntry, new_text: str) -> None:
    # Empty units are removed rather than left behind as blank runs
    if new_text:
        entry.fragment.set_content(new_text)
    else:
        entry.fragment.remove_owning_unit()
    entry.content = new_text
    entry.length = len(new_text)


def splice_range(fmap: List[FragmentMapEntry], start: int, length: int, replacement: str) -> SpliceResult:
    """Replace logical text [start, start+length) with `replacement` across the mapped fragments."""
    if not fmap:
        return SpliceResult(False, error="Fragment map is empty")
    replacement = replacement or ""
    end = start + length
    affected = [e for e in fmap if e.start < end and e.end > start]
    if not affected:
        return SpliceResult(False, error=f"No fragments cover range [{start}, {end})")

    try:
        if len(affected) == 1:
            entry = affected[0]
            rel = start - entry.start
            if rel < 0 or rel + length > len(entry.content):
                return SpliceResult(False, error=f"Range [{start}, {end}) is outside its fragment")
            _write_back(entry, entry.content[:rel] + replacement + entry.content[rel + length:])
            return SpliceResult(True, fragments_modified=1)

        first, last = affected[0], affected[-1]
        cut_start = start - first.start
        cut_end = last.end - end
        if cut_start < 0 or cut_start > len(first.content):
            return SpliceResult(False, error=f"Invalid start offset {start} in first fragment")
        if cut_end < 0 or cut_end > len(last.content):
            return SpliceResult(False, error=f"Invalid end offset {end} in last fragment")

        before = first.content[:cut_start]
        after = last.content[len(last.content) - cut_end:]

        _write_back(first, before + replacement)
        for entry in affected[1:-1]:
            entry.fragment.remove_owning_unit()
            entry.content = ""
            entry.length = 0
        _write_back(last, after)
        return SpliceResult(True, fragments_modified=len(affected))
    except Exception as exc:
        return SpliceResult(False, error=f"Exception while splicing: {exc}")


def splice_matches(
    fragments: Sequence[Fragment],
    matches: Iterable[Match],
    replace: Callable[[Match], str],
) -> List[Tuple[Match, SpliceResult]]:
    """
    Splice every match right-to-left.

    The map is rebuilt from the live fragments before each splice so earlier
    edits (including removed runs) never leave stale offsets. A match that runs
    into a span already replaced in this call is rejected.
    """
    outcomes: List[Tuple[Match, SpliceResult]] = []
    boundary: Optional[int] = None
    for m in sorted(matches, key=lambda x: x.start, reverse=True):
        if boundary is not None and m.end > boundary:
            outcomes.append((
                m,
                SpliceResult(False, error=f"{m.value!r} at {m.start} overlaps text already replaced from {boundary}; left unchanged"),
            ))
            continue
        replacement = replace(m)
        result = splice_range(map_fragments(live_fragments(fragments)), m.start, m.length, replacement)
        if result.success:
            boundary = m.start
        outcomes.append((m, result))
    return outcomes
