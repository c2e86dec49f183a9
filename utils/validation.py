"""
Input Validation and Resource Management Utilities
Byte-level validation of uploaded documents and images, plus resource
monitoring for long-running operations.
"""

import time
import tempfile
import psutil
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# Validation constants
VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'PDF_SIGNATURE_SEARCH_BYTES': 1024,  # Some producers emit junk before the header
    'MAX_FILE_SIZE_MB': 50,
    'MAX_PROCESSING_TIME_SECONDS': 300,  # 5 minutes
    'MAX_MEMORY_USAGE_MB': 1000,  # 1GB
    'SUPPORTED_PDF_VERSIONS': ['1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'],
    'IMAGE_EXTENSIONS': ('.jpg', '.jpeg', '.png'),
}

class ProcessingTimeoutError(Exception):
    """Custom exception for processing timeouts"""
    pass

class MemoryLimitError(Exception):
    """Custom exception for memory limit exceeded"""
    pass

def validate_pdf_signature(content: bytes) -> Tuple[bool, Optional[str]]:
    """
    Validate PDF signature (magic bytes) and version

    Args:
        content: Raw document bytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(content) < 4:
        return False, "File too small to be a valid PDF"

    window = content[:VALIDATION_CONSTANTS['PDF_SIGNATURE_SEARCH_BYTES']]
    offset = window.find(VALIDATION_CONSTANTS['PDF_SIGNATURE'])
    if offset < 0:
        return False, f"Invalid PDF signature. Expected {VALIDATION_CONSTANTS['PDF_SIGNATURE']}, got {content[:4]}"
    if offset > 0:
        logger.warning(f"PDF header found at offset {offset}, not at start of file")

    # Extract and validate PDF version
    header = content[offset:offset + 8]
    if len(header) >= 8:
        try:
            version_str = header[5:8].decode('ascii')
            if version_str not in VALIDATION_CONSTANTS['SUPPORTED_PDF_VERSIONS']:
                logger.warning(f"Unsupported PDF version: {version_str}")
                # Continue processing - many PDFs work even with unsupported versions
        except UnicodeDecodeError:
            logger.warning("Could not decode PDF version")

    return True, None

def validate_content_size(content: bytes, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate content size limits

    Args:
        content: Raw file content bytes
        max_size_mb: Maximum file size in MB (uses default if None)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size_mb is None:
        max_size_mb = VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']

    size_mb = len(content) / (1024 * 1024)
    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    logger.debug(f"Size validation passed: {size_mb:.1f}MB")
    return True, None

def is_image_name(name: str) -> bool:
    """Whether a file name carries one of the accepted image extensions"""
    return name.lower().endswith(VALIDATION_CONSTANTS['IMAGE_EXTENSIONS'])

def validate_processing_environment() -> Tuple[bool, Optional[str]]:
    """
    Validate that the system has sufficient resources for PDF processing

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        # Check available memory
        memory = psutil.virtual_memory()
        available_mb = memory.available / (1024 * 1024)

        if available_mb < 100:  # Require at least 100MB available
            return False, f"Insufficient memory available: {available_mb:.1f}MB (need at least 100MB)"

        # Check disk space for output staging
        temp_dir = tempfile.gettempdir()
        disk_usage = psutil.disk_usage(temp_dir)
        free_mb = disk_usage.free / (1024 * 1024)

        if free_mb < 100:  # Require at least 100MB free disk space
            return False, f"Insufficient disk space in {temp_dir}: {free_mb:.1f}MB (need at least 100MB)"

        logger.debug(f"Environment validation passed: {available_mb:.1f}MB memory, {free_mb:.1f}MB disk")
        return True, None

    except Exception as e:
        return False, f"Error checking system resources: {str(e)}"

class ResourceManager:
    """
    Context manager for tracking and limiting resource usage of one operation
    """

    def __init__(self, label: str = "operation", max_memory_mb: Optional[int] = None, max_time_seconds: Optional[int] = None):
        self.label = label
        self.max_memory_mb = max_memory_mb or VALIDATION_CONSTANTS['MAX_MEMORY_USAGE_MB']
        self.max_time_seconds = max_time_seconds or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']
        self.start_time = None
        self.start_memory = None

    def __enter__(self):
        self.start_time = time.time()
        self.start_memory = psutil.Process().memory_info().rss / (1024 * 1024)
        logger.debug(f"ResourceManager[{self.label}]: Starting with {self.start_memory:.1f}MB memory")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            processing_time = time.time() - self.start_time
            current_memory = psutil.Process().memory_info().rss / (1024 * 1024)
            memory_delta = current_memory - self.start_memory if self.start_memory else 0

            logger.info(f"ResourceManager[{self.label}]: Completed in {processing_time:.2f}s, "
                       f"memory usage: {memory_delta:+.1f}MB")
        return False

    def check_limits(self):
        """Check if resource limits have been exceeded"""
        current_time = time.time()

        # Check time limit
        if self.start_time and (current_time - self.start_time) > self.max_time_seconds:
            raise ProcessingTimeoutError(
                f"Processing timeout: {current_time - self.start_time:.1f}s "
                f"(max: {self.max_time_seconds}s)"
            )

        # Check memory limit
        try:
            current_memory = psutil.Process().memory_info().rss / (1024 * 1024)
        except psutil.Error as e:
            logger.warning(f"Could not check memory usage: {e}")
            return
        if current_memory > self.max_memory_mb:
            raise MemoryLimitError(
                f"Memory limit exceeded: {current_memory:.1f}MB "
                f"(max: {self.max_memory_mb}MB)"
            )

# Export main validation functions for easy import
__all__ = [
    'validate_pdf_signature',
    'validate_content_size',
    'is_image_name',
    'validate_processing_environment',
    'ResourceManager',
    'ProcessingTimeoutError',
    'MemoryLimitError',
    'VALIDATION_CONSTANTS'
]
