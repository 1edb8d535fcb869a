#!/usr/bin/env python3
"""
Unified Anonymizer Module

Single entry point for CLI and batch anonymization runs.
Provides consistent behavior, logging, and error handling across interfaces.
"""

import sys
import os
import traceback
import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Dict, Any

from . import pipeline
from .config import ProcessingOptions
from .report import write_report


def setup_logging(debug: bool = False, log_path: Optional[str] = None) -> None:
    """Setup unified logging configuration."""
    level = logging.DEBUG if debug else logging.INFO
    format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_path) if log_path else logging.NullHandler()
        ]
    )

    logger = logging.getLogger(__name__)
    logger.debug("Unified anonymizer logging initialized")


def validate_parameters(
    input_path: str,
    output_path: str,
    report_path: Optional[str] = None,
    min_length: Optional[int] = None,
) -> None:
    """Validate input parameters before processing."""
    logger = logging.getLogger(__name__)

    if not input_path or not os.path.exists(input_path):
        raise ValueError(f"Input file not found: {input_path}")

    if not pipeline.is_supported(input_path):
        raise ValueError(f"Input file must be a DOCX or DOCM file: {input_path}")

    if min_length is not None and min_length < 1:
        raise ValueError(f"Minimum match length must be >= 1, got {min_length}")

    # Create output directories
    if output_path and os.path.dirname(output_path):
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
    if report_path and os.path.dirname(report_path):
        os.makedirs(os.path.dirname(report_path), exist_ok=True)

    logger.debug(f"Parameters validated: input={input_path}, output={output_path}, report={report_path}")


def build_options(base: ProcessingOptions, flags=(), min_length: Optional[int] = None) -> ProcessingOptions:
    """Apply --no-XYZ flags and an optional length floor to `base`."""
    options = ProcessingOptions.from_cli_args(list(flags), base=base)
    if min_length is not None:
        options = replace(options, min_match_length=min_length)
    return options


def run_unified_anonymization(
    input_path: str,
    output_path: str,
    report_path: Optional[str] = None,
    two_pass: bool = True,
    min_length: Optional[int] = None,
    flags=(),
    debug: bool = False,
    log_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Unified anonymization entry point.

    Args:
        input_path: Path to input DOCX/DOCM file
        output_path: Path for the anonymized document
        report_path: Optional JSON report path
        two_pass: Run the two-pass code removal (default) or a single pass
        min_length: Override the first-pass minimum match length
        flags: --no-XYZ flags disabling container kinds
        debug: Enable debug logging
        log_path: Optional log file path

    Returns:
        Dictionary with processing results and metadata
    """
    logger = logging.getLogger(__name__)
    mode = "two_pass" if two_pass else "single_pass"

    setup_logging(debug, log_path)

    operation_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    logger.info(f"Starting anonymization operation {operation_id}")
    logger.info(f"Input: {input_path}")
    logger.info(f"Output: {output_path}")
    logger.info(f"Mode: {mode}")

    start_time = datetime.now()
    try:
        validate_parameters(input_path, output_path, report_path, min_length)

        if two_pass:
            config = pipeline.create_code_removal_configuration()
            config.first_pass.options = build_options(config.first_pass.options, flags, min_length)
            # Second-pass options keep their own floor; only the container flags carry over
            config.second_pass.options = build_options(config.second_pass.options, flags)
            result = pipeline.anonymize_document_two_pass(input_path, output_path, config, debug=debug)
        else:
            config = pipeline.create_default_configuration()
            config.options = build_options(config.options, flags, min_length)
            result = pipeline.anonymize_document(input_path, output_path, config, debug=debug)

        duration = (datetime.now() - start_time).total_seconds()

        if report_path:
            if result.success:
                write_report(report_path, input_path, result, mode=mode)
            else:
                pipeline.write_failure_report(report_path, input_path, result)

        if not result.success:
            raise RuntimeError("; ".join(result.errors) or "Anonymization failed")

        logger.info(f"Anonymization completed successfully in {duration:.2f} seconds")
        return {
            'success': True,
            'exit_code': 0,
            'duration': duration,
            'matches_found': result.matches_found,
            'matches_processed': result.matches_processed,
            'codes_removed': result.metadata.get('CodesRemoved', 0),
            'extracted_codes': list(result.metadata.get('ExtractedCodes', [])),
            'warnings': list(result.warnings),
            'input_file': input_path,
            'output_file': output_path,
            'report_file': report_path,
            'mode': mode,
            'operation_id': operation_id,
        }

    except Exception as e:
        logger.error(f"Anonymization failed: {str(e)}")
        logger.debug(f"Full traceback: {traceback.format_exc()}")

        return {
            'success': False,
            'exit_code': getattr(e, 'exit_code', 1),
            'error': str(e),
            'input_file': input_path,
            'mode': mode,
            'operation_id': operation_id,
            'duration': (datetime.now() - start_time).total_seconds(),
        }
