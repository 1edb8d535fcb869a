"""
Pass orchestration and the document driver.

TwoPassOrchestrator runs the first pass (which fills the extraction strategy's code
registry), commits, and when codes were collected runs a second pass that removes
standalone occurrences of those codes. The anonymize_* functions wrap it around a
DOCX file on disk.
"""

import json
import logging
import os
import shutil
import tempfile
import traceback
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .config import (
    ConfigurationError,
    ProcessingConfiguration,
    ProcessingOptions,
    TwoPassConfiguration,
)
from .docx_io import DocxDocument
from .replacements import (
    CompositeReplacementStrategy,
    DecimalDesignationReplacementStrategy,
    OrganizationCodeRemovalStrategy,
    RemoveReplacementStrategy,
    is_designation,
)
from .results import ProcessingResult, merge_results
from .rules import ExactValueSearchStrategy, default_strategies
from .runner import process_containers
from .splice import Fragment

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".docx", ".docm")

EnumerateContainers = Callable[[ProcessingOptions], Iterable[Tuple[str, Sequence[Fragment]]]]


class PassState:
    FIRST_PASS = "first_pass"
    SECOND_PASS = "second_pass"
    DONE = "done"


class AnonymizationError(Exception):
    """Document-level failure with a stable error code."""
    def __init__(self, message: str, error_code: str, technical_details: str = "", original_error: Exception = None):
        super().__init__(message)
        self.error_code = error_code
        self.technical_details = technical_details
        self.original_error = original_error


def _log_anonymization_error(error: AnonymizationError, debug: bool = False) -> None:
    """Emit structured logging for document failures."""
    logger.error("[%s] %s", error.error_code, error)
    if error.technical_details:
        logger.error("Details: %s", error.technical_details)
    if error.original_error is not None and debug:
        logger.debug(
            "".join(traceback.format_exception(type(error.original_error), error.original_error, error.original_error.__traceback__))
        )


def _failed_result(error: AnonymizationError) -> ProcessingResult:
    result = ProcessingResult.failed(f"[{error.error_code}] {error}")
    if error.technical_details:
        result.add_error(error.technical_details)
    result.metadata["ErrorCode"] = error.error_code
    return result


def run_single_pass(
    config: ProcessingConfiguration,
    enumerate_containers: EnumerateContainers,
    commit: Optional[Callable[[], None]] = None,
    log: Optional[logging.Logger] = None,
) -> ProcessingResult:
    """
    Visit every container `config.options` allows, then commit once.

    Failing to enumerate or commit is fatal for the document and comes back as a
    failed result rather than an exception.
    """
    try:
        result = process_containers(enumerate_containers(config.options), config, log=log)
    except Exception as exc:
        err = AnonymizationError(
            "Cannot enumerate document containers",
            "PROCESSING_FAILED",
            technical_details=f"{type(exc).__name__}: {exc}",
            original_error=exc,
        )
        _log_anonymization_error(err)
        return _failed_result(err)
    if commit is not None:
        try:
            commit()
        except Exception as exc:
            err = AnonymizationError(
                "Cannot save processed document",
                "OUTPUT_SAVE_FAILED",
                technical_details=f"{type(exc).__name__}: {exc}",
                original_error=exc,
            )
            _log_anonymization_error(err)
            return merge_results(result, _failed_result(err))
    return result


class TwoPassOrchestrator:
    def __init__(self, config: TwoPassConfiguration, log: Optional[logging.Logger] = None):
        config.validate()
        self.config = config
        self.log = log or logger
        self.state = PassState.FIRST_PASS

    def run(self, enumerate_containers: EnumerateContainers, commit: Optional[Callable[[], None]] = None) -> ProcessingResult:
        """Run the first pass and, when it collected codes, the second pass."""
        cfg = self.config
        self.state = PassState.FIRST_PASS
        first = run_single_pass(cfg.first_pass, enumerate_containers, commit, log=self.log)
        if not first.success:
            self.state = PassState.DONE
            return first

        codes = cfg.code_extraction_strategy.get_extracted_codes()
        if not codes:
            self.log.info("No organization codes extracted; second pass skipped")
            self.state = PassState.DONE
            return first

        self.state = PassState.SECOND_PASS
        self.log.info("Second pass: removing %d organization code(s)", len(codes))
        code_search = ExactValueSearchStrategy(codes, case_sensitive=cfg.second_pass.options.case_sensitive)
        second = run_single_pass(
            cfg.second_pass.with_strategies([code_search]),
            enumerate_containers,
            commit,
            log=self.log,
        )

        merged = merge_results(first, second)
        merged.metadata["CodesRemoved"] = len(codes)
        merged.metadata["ExtractedCodes"] = sorted(codes)
        self.state = PassState.DONE
        return merged


# ---------------------------------------------------------------------------
# Configuration factories
# ---------------------------------------------------------------------------

def create_default_configuration() -> ProcessingConfiguration:
    """Designations and names; designations lose their organization prefix."""
    return ProcessingConfiguration(
        search_strategies=default_strategies(),
        replacement_strategy=DecimalDesignationReplacementStrategy(),
        options=ProcessingOptions(min_match_length=8),
    )


def create_custom_configuration(strategies, replacement, options: Optional[ProcessingOptions] = None) -> ProcessingConfiguration:
    config = ProcessingConfiguration(
        search_strategies=list(strategies or []),
        replacement_strategy=replacement,
        options=options or ProcessingOptions(),
    )
    config.validate()
    return config


def create_code_removal_configuration(
    first_options: Optional[ProcessingOptions] = None,
    second_options: Optional[ProcessingOptions] = None,
) -> TwoPassConfiguration:
    """
    Standard two-pass setup.

    Pass one masks the organization code of every designation (collecting it) and
    removes names. Pass two skips properties and removes every standalone code,
    case-sensitively, regardless of length.
    """
    extraction = OrganizationCodeRemovalStrategy()
    first = ProcessingConfiguration(
        search_strategies=default_strategies(),
        replacement_strategy=CompositeReplacementStrategy(
            "DesignationOrRemove",
            is_designation,
            extraction,
            RemoveReplacementStrategy(),
        ),
        options=first_options or ProcessingOptions(min_match_length=5),
    )
    second = ProcessingConfiguration(
        search_strategies=[],
        replacement_strategy=RemoveReplacementStrategy(),
        options=second_options or ProcessingOptions(
            process_properties=False,
            min_match_length=1,
            case_sensitive=True,
        ),
    )
    return TwoPassConfiguration(first_pass=first, second_pass=second, code_extraction_strategy=extraction)


# ---------------------------------------------------------------------------
# Document drivers
# ---------------------------------------------------------------------------

def is_supported(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in SUPPORTED_EXTENSIONS


def _check_input(input_path: str) -> None:
    if not input_path or not os.path.isfile(input_path):
        raise AnonymizationError(f"File not found: {input_path}", "DOC_LOAD_FAILED")
    if not is_supported(input_path):
        raise AnonymizationError(
            f"Unsupported file type: {input_path}",
            "DOC_LOAD_FAILED",
            technical_details=f"Supported extensions: {', '.join(SUPPORTED_EXTENSIONS)}",
        )


def _run_on_docx(
    input_path: str,
    output_path: Optional[str],
    clear_properties: bool,
    run: Callable[[DocxDocument, Callable[[], None]], ProcessingResult],
    debug: bool = False,
) -> ProcessingResult:
    """Copy to a temp file, load, run, save, then move the result into place."""
    tmp_path = None
    try:
        _check_input(input_path)
        fd, tmp_path = tempfile.mkstemp(suffix=os.path.splitext(input_path)[1])
        os.close(fd)
        shutil.copyfile(input_path, tmp_path)

        try:
            doc = DocxDocument.load(tmp_path)
        except Exception as exc:
            raise AnonymizationError(
                "Failed to load document",
                "DOC_LOAD_FAILED",
                technical_details=f"{type(exc).__name__}: {exc}",
                original_error=exc,
            ) from exc

        cleared = doc.clear_core_properties() if clear_properties else None
        result = run(doc, lambda: doc.save(tmp_path))
        if cleared is not None:
            result.metadata.setdefault("PropertiesCleared", cleared)
        if not result.success:
            # The temp copy may be partial or unredacted; neither input nor output is touched
            logger.error("Anonymization failed for %s; no output written", input_path)
            return result

        destination = output_path or input_path
        try:
            out_dir = os.path.dirname(os.path.abspath(destination))
            os.makedirs(out_dir, exist_ok=True)
            shutil.copyfile(tmp_path, destination)
        except OSError as exc:
            raise AnonymizationError(
                f"Cannot write output file: {destination}",
                "OUTPUT_SAVE_FAILED",
                technical_details=str(exc),
                original_error=exc,
            ) from exc
        logger.info("Anonymized %s -> %s (%d/%d matches)", input_path, destination, result.matches_processed, result.matches_found)
        return result
    except AnonymizationError as err:
        _log_anonymization_error(err, debug)
        return _failed_result(err)
    except Exception as exc:
        err = AnonymizationError(
            "Unexpected anonymization failure",
            "UNEXPECTED_FAILURE",
            technical_details=f"{type(exc).__name__}: {exc}",
            original_error=exc,
        )
        _log_anonymization_error(err, debug)
        return _failed_result(err)
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)


def anonymize_document(
    input_path: str,
    output_path: Optional[str] = None,
    config: Optional[ProcessingConfiguration] = None,
    *,
    debug: bool = False,
) -> ProcessingResult:
    """Single-pass anonymization of one document."""
    config = config or create_default_configuration()
    try:
        config.validate()
    except ConfigurationError as exc:
        return ProcessingResult.failed(f"Invalid configuration: {exc}")

    def run(doc: DocxDocument, commit):
        return run_single_pass(config, doc.enumerate_containers, commit)

    return _run_on_docx(input_path, output_path, config.options.process_properties, run, debug=debug)


def anonymize_document_two_pass(
    input_path: str,
    output_path: Optional[str] = None,
    two_pass_config: Optional[TwoPassConfiguration] = None,
    *,
    debug: bool = False,
) -> ProcessingResult:
    """Two-pass anonymization: designations and names first, then the collected codes."""
    two_pass_config = two_pass_config or create_code_removal_configuration()
    try:
        orchestrator = TwoPassOrchestrator(two_pass_config)
    except ConfigurationError as exc:
        return ProcessingResult.failed(f"Invalid configuration: {exc}")

    def run(doc: DocxDocument, commit):
        return orchestrator.run(doc.enumerate_containers, commit)

    return _run_on_docx(
        input_path,
        output_path,
        two_pass_config.first_pass.options.process_properties,
        run,
        debug=debug,
    )


def write_failure_report(report_path: str, input_path: str, result: ProcessingResult) -> None:
    """Persist a minimal error report so the CLI can surface context."""
    payload = {
        "status": "error",
        "input": input_path,
        "error_code": result.metadata.get("ErrorCode", "UNEXPECTED_FAILURE"),
        "errors": list(result.errors),
    }
    try:
        with open(report_path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
    except OSError as report_exc:
        logger.error("Failed to write error report: %s", report_exc)
