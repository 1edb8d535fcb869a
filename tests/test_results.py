"""
Tests for results.py module.

Tests cover:
- ProcessingResult constructors and diagnostic de-duplication
- merge_results / merge_all aggregation
- ResultAwareLogger mirroring of warnings and errors
"""

import logging

import pytest
from docscrub.results import (
    ProcessingResult,
    ResultAwareLogger,
    merge_all,
    merge_results,
)


class TestProcessingResultConstructors:
    """Test the named constructors."""

    def test_successful(self):
        r = ProcessingResult.successful(3, 2)
        assert r.success is True
        assert (r.matches_found, r.matches_processed) == (3, 2)
        assert r.errors == [] and r.warnings == []

    def test_failed(self):
        r = ProcessingResult.failed("boom")
        assert r.success is False
        assert r.errors == ["boom"]

    def test_partial_success_is_success(self):
        """A partial success still reports success with a warning."""
        r = ProcessingResult.partial_success(5, 4, "one splice failed")
        assert r.success is True
        assert r.warnings == ["one splice failed"]

    def test_add_warning_deduplicates(self):
        r = ProcessingResult.successful()
        r.add_warning("w")
        r.add_warning("w")
        r.add_warning("")
        assert r.warnings == ["w"]

    def test_to_dict(self):
        r = ProcessingResult.successful(1, 1)
        r.metadata["CodesRemoved"] = 2
        d = r.to_dict()
        assert d["success"] is True
        assert d["metadata"] == {"CodesRemoved": 2}


class TestMergeResults:
    """Test merge_results."""

    def test_aggregation_example(self):
        """Success is ANDed, counts summed, diagnostics unioned."""
        a = ProcessingResult(success=True, matches_found=2, matches_processed=2, warnings=["w1"])
        b = ProcessingResult(success=False, matches_found=1, matches_processed=0, errors=["e1"], warnings=["w1"])
        merged = merge_results(a, b)
        assert merged.success is False
        assert merged.matches_found == 3
        assert merged.matches_processed == 2
        assert merged.errors == ["e1"]
        assert merged.warnings == ["w1"]

    def test_inputs_not_mutated(self):
        a = ProcessingResult(warnings=["a"])
        b = ProcessingResult(warnings=["b"])
        merge_results(a, b)
        assert a.warnings == ["a"]
        assert b.warnings == ["b"]

    def test_first_occurrence_order(self):
        a = ProcessingResult(warnings=["x", "y"])
        b = ProcessingResult(warnings=["z", "x"])
        assert merge_results(a, b).warnings == ["x", "y", "z"]

    def test_metadata_first_writer_wins(self):
        a = ProcessingResult(metadata={"k": 1})
        b = ProcessingResult(metadata={"k": 2, "other": 3})
        merged = merge_results(a, b)
        assert merged.metadata == {"k": 1, "other": 3}

    def test_merge_all(self):
        parts = [ProcessingResult.successful(1, 1) for _ in range(4)]
        merged = merge_all(parts)
        assert merged.success is True
        assert merged.matches_found == 4

    def test_merge_all_empty(self):
        merged = merge_all([])
        assert merged.success is True
        assert merged.matches_found == 0


class TestResultAwareLogger:
    """Test warning/error mirroring."""

    def test_warning_is_mirrored(self, caplog):
        result = ProcessingResult.successful()
        log = ResultAwareLogger(logging.getLogger("docscrub.test"), result)
        with caplog.at_level(logging.WARNING, logger="docscrub.test"):
            log.warning("Could not replace text at position %d", 7)
        assert result.warnings == ["Could not replace text at position 7"]
        assert "position 7" in caplog.text

    def test_repeated_warning_recorded_once(self):
        result = ProcessingResult.successful()
        log = ResultAwareLogger(logging.getLogger("docscrub.test"), result)
        log.warning("same")
        log.warning("same")
        assert result.warnings == ["same"]

    def test_error_with_exception_info(self):
        result = ProcessingResult.successful()
        log = ResultAwareLogger(logging.getLogger("docscrub.test"), result)
        try:
            raise KeyError("missing")
        except KeyError as exc:
            log.error("Container failed", exc_info=exc)
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Container failed | Exception: KeyError")

    def test_error_with_exc_info_true(self):
        result = ProcessingResult.successful()
        log = ResultAwareLogger(logging.getLogger("docscrub.test"), result)
        try:
            raise ValueError("bad")
        except ValueError:
            log.error("Failed", exc_info=True)
        assert result.errors == ["Failed | Exception: ValueError: bad"]

    def test_info_not_mirrored(self):
        result = ProcessingResult.successful()
        log = ResultAwareLogger(logging.getLogger("docscrub.test"), result)
        log.info("hello")
        log.debug("details")
        assert result.warnings == [] and result.errors == []

    def test_without_result(self):
        """Logging works when no result is attached."""
        log = ResultAwareLogger(logging.getLogger("docscrub.test"))
        log.warning("nothing to mirror")
