"""
Configuration system for the PDF Tools engine.

Provides structured configuration using dataclasses with clear defaults,
validation, and dict/environment constructors. Rendering scale, JPEG quality
and output naming are fixed engine constants (see constants/engine_defaults)
and are deliberately not part of this configuration.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Mapping
import logging
import os

logger = logging.getLogger(__name__)

ENV_PREFIX = "PDFTOOLS_"
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """
    Central configuration for PDFEngine initialization.

    Example:
        >>> config = EngineConfig(max_file_size_mb=100)
        >>> engine = PDFEngine(config=config)
    """

    # Backend selection (see engine.backends)
    backend: str = "default"

    # Input limits
    max_file_size_mb: int = 50
    max_inputs: int = 200

    # Validation
    validate_on_open: bool = True

    # Performance
    timeout_seconds: int = 300

    # Logging
    log_level: str = "INFO"

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if not self.backend:
            logger.error("backend must be a non-empty name")
            return False

        if self.max_file_size_mb < 1:
            logger.error("max_file_size_mb must be at least 1 MB")
            return False

        if self.max_inputs < 1:
            logger.error("max_inputs must be at least 1")
            return False

        if self.timeout_seconds < 30:
            logger.error("timeout_seconds must be at least 30 seconds")
            return False

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            logger.error(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}")
            return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Useful for serialization, logging, and debugging.
        """
        return {
            'backend': self.backend,
            'max_file_size_mb': self.max_file_size_mb,
            'max_inputs': self.max_inputs,
            'validate_on_open': self.validate_on_open,
            'timeout_seconds': self.timeout_seconds,
            'log_level': self.log_level,
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from dictionary.

        Unknown keys are ignored with a warning.

        Args:
            config: Dictionary of configuration values

        Returns:
            EngineConfig instance
        """
        valid_keys = {
            'backend', 'max_file_size_mb', 'max_inputs',
            'validate_on_open', 'timeout_seconds', 'log_level',
        }

        filtered_config = {}
        for key, value in config.items():
            if key in valid_keys:
                filtered_config[key] = value
            else:
                logger.warning(f"Unknown config key '{key}' will be ignored")

        return cls(**filtered_config)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineConfig':
        """
        Create EngineConfig from PDFTOOLS_* environment variables.

        Example:
            PDFTOOLS_MAX_FILE_SIZE_MB=100 PDFTOOLS_LOG_LEVEL=DEBUG
        """
        environ = os.environ if environ is None else environ
        converters = {
            'backend': str,
            'max_file_size_mb': int,
            'max_inputs': int,
            'validate_on_open': _parse_bool,
            'timeout_seconds': int,
            'log_level': str.upper,
        }

        values: Dict[str, Any] = {}
        for key, convert in converters.items():
            raw = environ.get(f"{ENV_PREFIX}{key.upper()}")
            if raw is None:
                continue
            try:
                values[key] = convert(raw)
            except ValueError:
                logger.warning(f"Invalid value for {ENV_PREFIX}{key.upper()}: {raw!r}, using default")

        return cls(**values)

    @classmethod
    def default(cls) -> 'EngineConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        return (
            f"EngineConfig("
            f"backend={self.backend}, "
            f"max_file_size={self.max_file_size_mb}MB, "
            f"timeout={self.timeout_seconds}s)"
        )


@dataclass
class PageRange:
    """
    Inclusive range of 1-based page numbers.

    Example:
        >>> PageRange(start=2, end=5).to_indices(10)
        [1, 2, 3, 4]
    """

    start: int = 1
    end: Optional[int] = None  # None means "to end of document"

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"start page must be >= 1, got {self.start}")

        if self.end is not None:
            if self.end < 1:
                raise ValueError(f"end page must be >= 1, got {self.end}")
            if self.end < self.start:
                raise ValueError(
                    f"end page ({self.end}) must be >= start page ({self.start})"
                )

    def to_indices(self, total_pages: int) -> List[int]:
        """
        0-based page indices selected in a document of ``total_pages``.

        The range is clamped to the document; a range starting past the
        last page selects nothing.
        """
        if total_pages < 1 or self.start > total_pages:
            return []

        end = total_pages if self.end is None else min(self.end, total_pages)
        return list(range(self.start - 1, end))

    @classmethod
    def parse(cls, text: str) -> 'PageRange':
        """
        Parse "N", "N-M" or "N-" into a PageRange.

        Raises:
            ValueError: If the text is not a valid range
        """
        text = text.strip()
        if "-" not in text:
            page = int(text)
            return cls(start=page, end=page)

        start_text, end_text = text.split("-", 1)
        start = int(start_text) if start_text.strip() else 1
        end = int(end_text) if end_text.strip() else None
        return cls(start=start, end=end)

    def __repr__(self) -> str:
        if self.end is None:
            return f"PageRange({self.start}→end)"
        elif self.start == self.end:
            return f"PageRange(page {self.start})"
        else:
            return f"PageRange({self.start}→{self.end})"
