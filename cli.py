"""PDF Tools command line interface

Examples:
    python cli.py merge a.pdf b.pdf -o merged.pdf
    python cli.py split report.pdf --pages 2-5
    python cli.py pdf-to-images slides.pdf -o slides_images
    python cli.py images-to-pdf scan1.jpg scan2.png
    python cli.py unlock secret.pdf --password hunter2
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm

from engine.config import EngineConfig, PageRange
from engine.errors import IncorrectPassword
from models.document import OperationResult
from operations import InputFile, images_to_pdf, merge_pdfs, pdf_to_images, split_pdf, unlock_pdf
from utils.storage import output_directory, save_result
from utils.validation import MemoryLimitError, ProcessingTimeoutError, is_image_name

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_INCORRECT_PASSWORD = 3

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def read_input_files(paths: Sequence[str]) -> List[InputFile]:
    """
    Read each path into an InputFile named after the file.

    Raises:
        OSError: If a file cannot be read
    """
    return [InputFile(name=Path(path).name, data=Path(path).read_bytes()) for path in paths]


def _configure_cli_logging(level: str) -> None:
    handler = RichHandler(console=console, show_time=False, show_path=False)
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[handler])
    for module_name in ["cli", "engine", "operations", "utils"]:
        logging.getLogger(module_name).setLevel(level.upper())


def _page_range(text: Optional[str]) -> Optional[PageRange]:
    if text is None:
        return None
    try:
        return PageRange.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid page range {text!r}: {e}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdftools",
        description="Merge, split, rasterize, compose and unlock PDF documents.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: PDFTOOLS_LOG_LEVEL or INFO)")
    parser.add_argument("--yes", "-y", action="store_true", help="Overwrite existing output without asking")
    commands = parser.add_subparsers(dest="command", required=True)

    merge = commands.add_parser("merge", help="Merge PDFs in the given order")
    merge.add_argument("inputs", nargs="+", help="PDF files to merge (at least two)")
    merge.add_argument("--output", "-o", type=str, default=None, help="Output file (default: merged.pdf)")

    split = commands.add_parser("split", help="Split a PDF into single-page PDFs")
    split.add_argument("inputs", nargs="+", help="PDF file to split")
    split.add_argument("--output", "-o", type=str, default=None, help="Output folder (default: split_pages)")
    split.add_argument("--pages", type=_page_range, default=None, help="Pages to extract: N, N-M or N- (default: all)")

    to_images = commands.add_parser("pdf-to-images", help="Render PDF pages to JPEG")
    to_images.add_argument("inputs", nargs="+", help="PDF file to render")
    to_images.add_argument("--output", "-o", type=str, default=None, help="Output folder (default: pdf_images)")
    to_images.add_argument("--pages", type=_page_range, default=None, help="Pages to render: N, N-M or N- (default: all)")

    from_images = commands.add_parser("images-to-pdf", help="Compose JPEG/PNG images into a PDF")
    from_images.add_argument("inputs", nargs="+", help="Image files, one page each (.png is PNG, anything else JPEG)")
    from_images.add_argument("--output", "-o", type=str, default=None, help="Output file (default: images.pdf)")

    unlock = commands.add_parser("unlock", help="Remove password protection (pages become images)")
    unlock.add_argument("inputs", nargs="+", help="Encrypted PDF file")
    unlock.add_argument("--output", "-o", type=str, default=None, help="Output file (default: unlocked.pdf)")
    unlock.add_argument("--password", "-p", type=str, default=None, help="Document password (prompted if omitted)")

    return parser


def _run_operation(args: argparse.Namespace, inputs: List[InputFile], config: EngineConfig) -> OperationResult:
    if args.command == "merge":
        return merge_pdfs(inputs, config)
    if args.command == "split":
        return split_pdf(inputs, config, args.pages)
    if args.command == "pdf-to-images":
        return pdf_to_images(inputs, config, args.pages)
    if args.command == "images-to-pdf":
        return images_to_pdf(inputs, config)

    password = args.password
    if password is None:
        password = getpass.getpass("Password: ")
    return unlock_pdf(inputs, password, config)


def _choose_destination(result: OperationResult, output: Optional[str], assume_yes: bool) -> Optional[str]:
    """Destination path, or None when the user declines to overwrite."""
    destination = output or result.directory or result.outputs[0].name
    target = output_directory(destination) if result.directory else Path(destination)
    if assume_yes or not target.exists():
        return destination
    if Confirm.ask(f"[yellow]{target}[/yellow] exists. Overwrite files in it?", console=console, default=False):
        return destination
    return None


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run one operation, save its result. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = EngineConfig.from_env()
    _configure_cli_logging(args.log_level or config.log_level)

    if args.command == "images-to-pdf":
        unknown = [path for path in args.inputs if not is_image_name(path)]
        if unknown:
            console.print(f"[yellow]Warning:[/yellow] not a .jpg/.jpeg/.png name, reading as JPEG: {', '.join(unknown)}")

    try:
        inputs = read_input_files(args.inputs)
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return EXIT_USAGE

    try:
        result = _run_operation(args, inputs, config)
    except (ProcessingTimeoutError, MemoryLimitError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return EXIT_FAILED

    if not result.ok:
        error = result.error
        console.print(f"[bold red]Error:[/bold red] {error.message}")
        if error.detail:
            console.print(f"  {error.detail}")
        if isinstance(error, IncorrectPassword):
            console.print("Check the password and run the command again.")
            return EXIT_INCORRECT_PASSWORD
        return EXIT_FAILED

    destination = _choose_destination(result, args.output, args.yes)
    try:
        outcome = save_result(result, destination)
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] could not write output: {e}")
        return EXIT_FAILED
    if outcome.cancelled:
        console.print("Save cancelled; nothing was written.")
        return EXIT_OK

    for path in outcome.paths:
        print(path)
    return EXIT_OK


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
