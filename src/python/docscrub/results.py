"""
Processing results and their aggregation.

A ProcessingResult is created for every container pass and merged upward into a
per-pass and finally a per-document result.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


def _dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


@dataclass
class ProcessingResult:
    success: bool = True
    matches_found: int = 0
    matches_processed: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def successful(cls, found: int = 0, processed: int = 0) -> "ProcessingResult":
        return cls(success=True, matches_found=found, matches_processed=processed)

    @classmethod
    def failed(cls, error: str) -> "ProcessingResult":
        return cls(success=False, errors=[error])

    @classmethod
    def partial_success(cls, found: int, processed: int, warning: str) -> "ProcessingResult":
        """A container that hit an error part-way is still reported as a success."""
        return cls(success=True, matches_found=found, matches_processed=processed, warnings=[warning])

    def add_warning(self, message: str) -> None:
        if message and message not in self.warnings:
            self.warnings.append(message)

    def add_error(self, message: str) -> None:
        if message and message not in self.errors:
            self.errors.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "matches_found": self.matches_found,
            "matches_processed": self.matches_processed,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "metadata": dict(self.metadata),
        }


def merge_results(first: ProcessingResult, second: ProcessingResult) -> ProcessingResult:
    """
    Combine two results into a new one.

    success is the conjunction, counters are summed, diagnostics are unioned
    keeping the order of first occurrence, and metadata keys keep the value from
    `first` when both sides define them.
    """
    metadata = dict(first.metadata)
    for key, value in second.metadata.items():
        metadata.setdefault(key, value)
    return ProcessingResult(
        success=first.success and second.success,
        matches_found=first.matches_found + second.matches_found,
        matches_processed=first.matches_processed + second.matches_processed,
        errors=_dedupe(first.errors + second.errors),
        warnings=_dedupe(first.warnings + second.warnings),
        metadata=metadata,
    )


def merge_all(results: Iterable[ProcessingResult]) -> ProcessingResult:
    merged = ProcessingResult.successful()
    for result in results:
        merged = merge_results(merged, result)
    return merged


class ResultAwareLogger(logging.LoggerAdapter):
    """
    Logger adapter that copies WARNING and ERROR records into a ProcessingResult.

    Errors logged with exc_info carry the exception type and message so the
    caller sees why a container failed without reading the log.
    """

    def __init__(self, logger: logging.Logger, result: Optional[ProcessingResult] = None):
        super().__init__(logger, {})
        self.result = result

    def log(self, level, msg, *args, **kwargs):
        if self.result is not None:
            message = msg % args if args else str(msg)
            if level >= logging.ERROR:
                exc = kwargs.get("exc_info")
                if exc is True:
                    exc = sys.exc_info()[1]
                if isinstance(exc, BaseException):
                    message = f"{message} | Exception: {type(exc).__name__}: {exc}"
                self.result.add_error(message)
            elif level >= logging.WARNING:
                self.result.add_warning(message)
        super().log(level, msg, *args, **kwargs)
