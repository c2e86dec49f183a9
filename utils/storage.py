"""
Output persistence for operation results.

Single-file results are written to the chosen destination path. Multi-file
results are written into a folder derived from the destination (any file
extension stripped), created if needed. Files that already exist under the
same name are overwritten.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from models.document import OperationResult

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class SaveStatus(str, Enum):
    SAVED = "saved"
    CANCELLED = "cancelled"


@dataclass
class SaveOutcome:
    """What happened to a result handed to save_result"""
    status: SaveStatus
    paths: List[Path] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return self.status is SaveStatus.CANCELLED


def ensure_directory(path: PathLike) -> Path:
    """
    Create ``path`` (and parents). An existing directory is not an error.

    Raises:
        FileExistsError: If ``path`` exists and is not a directory
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def write_output(path: PathLike, data: bytes) -> Path:
    """Write bytes to ``path``, replacing any existing file."""
    target = Path(path)
    if target.exists():
        logger.debug(f"Overwriting existing file: {target}")
    target.write_bytes(data)
    return target


def output_directory(destination: PathLike) -> Path:
    """
    Folder for multi-file results: the destination with its extension stripped.

    Example:
        >>> output_directory("/tmp/split_pages.pdf")
        PosixPath('/tmp/split_pages')
    """
    destination = Path(destination)
    return destination.with_suffix("") if destination.suffix else destination


def save_result(result: OperationResult, destination: Optional[PathLike]) -> SaveOutcome:
    """
    Persist a successful OperationResult.

    Args:
        result: Successful result to write
        destination: File path for single-file results, folder path for
            multi-file results; None means the user chose no destination

    Returns:
        SaveOutcome with the written paths, or CANCELLED when destination is None

    Raises:
        ValueError: If ``result`` is a failure
        OSError: If writing fails
    """
    if not result.ok:
        raise ValueError(f"Cannot save failed {result.operation} result")

    if destination is None:
        logger.info(f"Save of {result.operation} result cancelled")
        return SaveOutcome(SaveStatus.CANCELLED)

    if result.directory is None:
        if len(result.outputs) != 1:
            raise ValueError(f"{result.operation} result has {len(result.outputs)} outputs but no directory")
        path = write_output(destination, result.outputs[0].data)
        logger.info(f"Saved {result.outputs[0].name} to {path}")
        return SaveOutcome(SaveStatus.SAVED, [path])

    directory = ensure_directory(output_directory(destination))
    paths = [write_output(directory / output.name, output.data) for output in result.outputs]
    logger.info(f"Saved {len(paths)} file(s) to {directory}")
    return SaveOutcome(SaveStatus.SAVED, paths)
