"""Anonymize many documents into one output directory."""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from . import pipeline
from .config import ProcessingConfiguration, TwoPassConfiguration

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    input_path: str
    output_path: Optional[str] = None
    success: bool = False
    matches_found: int = 0
    matches_processed: int = 0
    codes_removed: int = 0
    extracted_codes: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class BatchResult:
    files: List[FileResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for f in self.files if f.success)

    @property
    def failed(self) -> int:
        return len(self.files) - self.succeeded

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self):
        return {
            "success": self.success,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "files": [vars(f) for f in self.files],
        }


def anonymize_batch(
    paths: Iterable[str],
    output_dir: str,
    two_pass: bool = True,
    config: Optional[ProcessingConfiguration] = None,
    two_pass_config: Optional[TwoPassConfiguration] = None,
    debug: bool = False,
) -> BatchResult:
    """
    Process each file independently; one failure never stops the batch.

    The extraction registry of a shared two-pass configuration is cleared before
    each document so codes never leak from one file into the next.
    """
    os.makedirs(output_dir, exist_ok=True)
    if two_pass and two_pass_config is None:
        two_pass_config = pipeline.create_code_removal_configuration()
    batch = BatchResult()

    for path in paths:
        entry = FileResult(input_path=path)
        batch.files.append(entry)
        if not os.path.isfile(path):
            entry.errors.append(f"File not found: {path}")
            logger.warning("Skipping missing file %s", path)
            continue
        if not pipeline.is_supported(path):
            entry.errors.append(f"Unsupported file type: {path}")
            logger.warning("Skipping unsupported file %s", path)
            continue

        entry.output_path = os.path.join(output_dir, os.path.basename(path))
        if two_pass:
            two_pass_config.code_extraction_strategy.clear_extracted_codes()
            result = pipeline.anonymize_document_two_pass(path, entry.output_path, two_pass_config, debug=debug)
        else:
            result = pipeline.anonymize_document(path, entry.output_path, config, debug=debug)

        entry.success = result.success
        entry.matches_found = result.matches_found
        entry.matches_processed = result.matches_processed
        entry.codes_removed = result.metadata.get("CodesRemoved", 0)
        entry.extracted_codes = list(result.metadata.get("ExtractedCodes", []))
        entry.warnings = list(result.warnings)
        entry.errors = list(result.errors)

    logger.info("Batch finished: %d succeeded, %d failed", batch.succeeded, batch.failed)
    return batch
