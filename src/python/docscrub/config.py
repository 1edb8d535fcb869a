from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Tuple

from .replacements import OrganizationCodeRemovalStrategy, RemoveReplacementStrategy


class ConfigurationError(ValueError):
    """Raised when a processing configuration cannot be used."""


class ContainerKind:
    CONTENT = "content"
    HEADER = "header"
    FOOTER = "footer"
    PROPERTY = "property"
    TEXTBOX = "textbox"
    NOTE = "note"


CLI_ARG_PAIRS: List[Tuple[str, str]] = [
    ("--no-properties", "process_properties"),
    ("--no-text-boxes", "process_text_boxes"),
    ("--no-notes", "process_notes"),
    ("--no-headers", "process_headers"),
    ("--no-footers", "process_footers"),
]

CLI_ARG_MAP = dict(CLI_ARG_PAIRS)
FIELD_TO_CLI = {name: flag for flag, name in CLI_ARG_PAIRS}


@dataclass
class ProcessingOptions:
    """Which container kinds to visit and how matches are filtered."""

    process_properties: bool = True
    process_text_boxes: bool = True
    process_notes: bool = True
    process_headers: bool = True
    process_footers: bool = True
    min_match_length: int = 8
    case_sensitive: bool = False

    def __post_init__(self):
        if self.min_match_length < 1:
            raise ConfigurationError(f"min_match_length must be >= 1, got {self.min_match_length}")

    @classmethod
    def from_cli_args(cls, args: List[str], base: Optional["ProcessingOptions"] = None) -> "ProcessingOptions":
        """Parse --no-XYZ flags; unknown flags are ignored."""
        options = replace(base) if base is not None else cls()
        for arg in args:
            if arg in CLI_ARG_MAP:
                setattr(options, CLI_ARG_MAP[arg], False)
        return options

    def to_cli_args(self) -> List[str]:
        args: List[str] = []
        for name, flag in FIELD_TO_CLI.items():
            if not getattr(self, name):
                args.append(flag)
        return args

    def enabled_kinds(self) -> List[str]:
        kinds = [ContainerKind.CONTENT]
        if self.process_headers:
            kinds.append(ContainerKind.HEADER)
        if self.process_footers:
            kinds.append(ContainerKind.FOOTER)
        if self.process_text_boxes:
            kinds.append(ContainerKind.TEXTBOX)
        if self.process_notes:
            kinds.append(ContainerKind.NOTE)
        if self.process_properties:
            kinds.append(ContainerKind.PROPERTY)
        return kinds


@dataclass
class ProcessingConfiguration:
    search_strategies: List[Any] = field(default_factory=list)
    replacement_strategy: Any = field(default_factory=RemoveReplacementStrategy)
    options: ProcessingOptions = field(default_factory=ProcessingOptions)

    def validate(self, require_strategies: bool = True) -> None:
        if require_strategies and not self.search_strategies:
            raise ConfigurationError("At least one search strategy is required")
        for strategy in self.search_strategies:
            if strategy is None or not callable(getattr(strategy, "find_matches", None)):
                raise ConfigurationError(f"Invalid search strategy: {strategy!r}")
        if self.replacement_strategy is None or not callable(getattr(self.replacement_strategy, "replace", None)):
            raise ConfigurationError(f"Invalid replacement strategy: {self.replacement_strategy!r}")
        if not isinstance(self.options, ProcessingOptions):
            raise ConfigurationError("options must be a ProcessingOptions instance")

    def with_strategies(self, extra: List[Any]) -> "ProcessingConfiguration":
        """Copy of this configuration with `extra` appended to the search strategies."""
        return ProcessingConfiguration(
            search_strategies=list(self.search_strategies) + list(extra),
            replacement_strategy=self.replacement_strategy,
            options=self.options,
        )


@dataclass
class TwoPassConfiguration:
    """
    First pass handles designations and collects organization codes, second pass
    removes standalone occurrences of those codes.
    """

    first_pass: ProcessingConfiguration = field(default_factory=ProcessingConfiguration)
    second_pass: ProcessingConfiguration = field(default_factory=ProcessingConfiguration)
    code_extraction_strategy: Optional[OrganizationCodeRemovalStrategy] = None

    def validate(self) -> None:
        self.first_pass.validate()
        # The second pass gets its code strategy appended at run time
        self.second_pass.validate(require_strategies=False)
        strategy = self.code_extraction_strategy
        if strategy is None or not callable(getattr(strategy, "get_extracted_codes", None)):
            raise ConfigurationError("A code extraction strategy with get_extracted_codes() is required")
