"""
Container pass runner: search and splice one logical text container.

Errors stay local. A failed splice becomes a warning and the remaining matches
are still processed; an unexpected exception ends the container with a partial
success so sibling containers are not affected.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

from .matches import find_all_matches
from .results import ProcessingResult, ResultAwareLogger, merge_results
from .splice import Fragment, collect_text, live_fragments, splice_matches

logger = logging.getLogger(__name__)


def process_container(
    fragments: Sequence[Fragment],
    config,
    kind: str = "content",
    log: Optional[logging.Logger] = None,
) -> ProcessingResult:
    result = ProcessingResult.successful()
    rlog = ResultAwareLogger(log or logger, result)
    found = processed = 0
    try:
        text = collect_text(live_fragments(fragments))
        if not text:
            return result
        matches = find_all_matches(text, config)
        if not matches:
            return result
        found = len(matches)
        for m, outcome in splice_matches(fragments, matches, config.replacement_strategy.replace):
            if outcome.success:
                processed += 1
            else:
                rlog.warning("Could not replace text at position %d in %s: %s", m.start, kind, outcome.error)
        rlog.debug("%s: found %d, processed %d", kind, found, processed)
    except Exception as exc:
        rlog.logger.error("Error processing %s container: %s", kind, exc, exc_info=exc)
        result.add_warning(f"Error processing {kind} container: {exc}")
    result.matches_found = found
    result.matches_processed = processed
    return result


def process_containers(
    containers: Iterable[Tuple[str, Sequence[Fragment]]],
    config,
    log: Optional[logging.Logger] = None,
) -> ProcessingResult:
    """Run process_container over every (kind, fragments) pair and merge the results."""
    merged = ProcessingResult.successful()
    counts = {}
    for kind, fragments in containers:
        merged = merge_results(merged, process_container(fragments, config, kind=kind, log=log))
        counts[kind] = counts.get(kind, 0) + 1
    (log or logger).debug("Visited containers: %s", counts)
    return merged
