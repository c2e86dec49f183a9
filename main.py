"""PDF Tools Python Server"""

import io
import logging
import asyncio
import zipfile
from typing import List, Optional
import os

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from rich.console import Console
from rich.logging import RichHandler

from constants.engine_defaults import MEDIA_TYPE_ZIP
from engine.config import EngineConfig, PageRange
from models.api_types import ErrorResponse, OperationResponse, ResponseFormat
from models.document import OperationResult
from operations import images_to_pdf, merge_pdfs, pdf_to_images, split_pdf, unlock_pdf
from utils.endpoint_decorators import handle_operation, raise_for_result, read_uploads
from utils.validation import validate_processing_environment

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "tauri://localhost",
]
ENGINE_CONFIG = EngineConfig.from_env()
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed document or wrong number of inputs"},
    401: {"model": ErrorResponse, "description": "Password missing or incorrect"},
    408: {"description": "Processing timed out"},
    413: {"model": ErrorResponse, "description": "Input too large"},
    415: {"model": ErrorResponse, "description": "Image is not a valid JPEG/PNG"},
    422: {"model": ErrorResponse, "description": "Page could not be rendered"},
    507: {"description": "Memory limit exceeded"},
}

logger = logging.getLogger("rich")

app = FastAPI(
    title="PDF Tools API",
    description="Merge, split, rasterize, compose and unlock PDF documents",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _page_range(start_page: int, end_page: Optional[int]) -> Optional[PageRange]:
    if start_page == 1 and end_page is None:
        return None
    try:
        return PageRange(start=start_page, end=end_page)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _build_response(result: OperationResult, response_format: ResponseFormat):
    """Single file as-is, multi-file results as a ZIP named after their folder."""
    if response_format is ResponseFormat.JSON:
        return OperationResponse.from_result(result)

    if result.directory is None:
        output = result.outputs[0]
        return Response(
            content=output.data,
            media_type=output.media_type,
            headers={"Content-Disposition": f'attachment; filename="{output.name}"'},
        )

    archive = io.BytesIO()
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for output in result.outputs:
            zf.writestr(f"{result.directory}/{output.name}", output.data)

    return Response(
        content=archive.getvalue(),
        media_type=MEDIA_TYPE_ZIP,
        headers={"Content-Disposition": f'attachment; filename="{result.directory}.zip"'},
    )


@app.get("/")
async def root():
    """Service description"""
    return {
        "message": "PDF Tools API",
        "version": API_VERSION,
        "features": [
            "Merge PDFs in upload order",
            "Split a PDF into single-page PDFs",
            "Render PDF pages to JPEG",
            "Compose JPEG/PNG images into a PDF",
            "Unlock password-protected PDFs",
        ]
    }

@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import PIL
        import pymupdf
        import pikepdf
        import numpy

        resources_ok, resources_error = validate_processing_environment()

        return {
            "status": "healthy" if resources_ok else "degraded",
            "version": API_VERSION,
            "backend": ENGINE_CONFIG.backend,
            "resources": resources_error or "ok",
            "features": {
                "pdf_parsing": "pikepdf",
                "pdf_composition": "pikepdf",
                "rendering": "PyMuPDF",
                "image_codec": "Pillow",
            },
            "dependencies": {
                "PIL": PIL.__version__,
                "PyMuPDF": pymupdf.VersionBind,
                "pikepdf": pikepdf.__version__,
                "numpy": numpy.__version__
            }
        }
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )

@app.post("/merge", responses=ERROR_RESPONSES)
@handle_operation
async def merge(
    *,
    files: List[UploadFile] = File(..., description="PDF files, merged in upload order"),
    response_format: ResponseFormat = Query(ResponseFormat.FILE, description="Return the file or JSON with base64 data"),
    processing_timeout: Optional[int] = Query(ENGINE_CONFIG.timeout_seconds, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Merge two or more PDFs.

    **Returns:**
    - `merged.pdf` with every page of every input, inputs in upload order
    """
    inputs = await read_uploads(files)
    logger.info(f"Merging {len(inputs)} uploaded documents")

    result = await asyncio.to_thread(merge_pdfs, inputs, ENGINE_CONFIG)
    return _build_response(raise_for_result(result), response_format)

@app.post("/split", responses=ERROR_RESPONSES)
@handle_operation
async def split(
    *,
    file: UploadFile = File(...),
    start_page: int = Query(1, ge=1, description="Starting page number (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Ending page number (1-based), None for all pages"),
    response_format: ResponseFormat = Query(ResponseFormat.FILE, description="Return a ZIP or JSON with base64 data"),
    processing_timeout: Optional[int] = Query(ENGINE_CONFIG.timeout_seconds, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Split a PDF into single-page PDFs.

    **Returns:**
    - `split_pages.zip` containing `split_pages/page_001.pdf`, `page_002.pdf`, ...
    """
    page_range = _page_range(start_page, end_page)
    inputs = await read_uploads([file])
    logger.info(f"Splitting {inputs[0].name} (pages {start_page} to {end_page or 'end'})")

    result = await asyncio.to_thread(split_pdf, inputs, ENGINE_CONFIG, page_range)
    return _build_response(raise_for_result(result), response_format)

@app.post("/pdf-to-images", responses=ERROR_RESPONSES)
@handle_operation
async def convert_pdf_to_images(
    *,
    file: UploadFile = File(...),
    start_page: int = Query(1, ge=1, description="Starting page number (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Ending page number (1-based), None for all pages"),
    response_format: ResponseFormat = Query(ResponseFormat.FILE, description="Return a ZIP or JSON with base64 data"),
    processing_timeout: Optional[int] = Query(ENGINE_CONFIG.timeout_seconds, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Render each page to JPEG at twice the page size in points.

    **Returns:**
    - `pdf_images.zip` containing `pdf_images/page_001.jpg`, `page_002.jpg`, ...
    """
    page_range = _page_range(start_page, end_page)
    inputs = await read_uploads([file])
    logger.info(f"Rendering {inputs[0].name} to JPEG (pages {start_page} to {end_page or 'end'})")

    result = await asyncio.to_thread(pdf_to_images, inputs, ENGINE_CONFIG, page_range)
    return _build_response(raise_for_result(result), response_format)

@app.post("/images-to-pdf", responses=ERROR_RESPONSES)
@handle_operation
async def convert_images_to_pdf(
    *,
    files: List[UploadFile] = File(..., description="JPEG/PNG images, one page each in upload order"),
    response_format: ResponseFormat = Query(ResponseFormat.FILE, description="Return the file or JSON with base64 data"),
    processing_timeout: Optional[int] = Query(ENGINE_CONFIG.timeout_seconds, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Compose images into a PDF.

    **Format detection:**
    - `.png` files are read as PNG, everything else as JPEG

    **Returns:**
    - `images.pdf`, each page exactly the size of its image (1 px = 1 pt)
    """
    inputs = await read_uploads(files)
    logger.info(f"Composing {len(inputs)} images into a PDF")

    result = await asyncio.to_thread(images_to_pdf, inputs, ENGINE_CONFIG)
    return _build_response(raise_for_result(result), response_format)

@app.post("/unlock", responses=ERROR_RESPONSES)
@handle_operation
async def unlock(
    *,
    file: UploadFile = File(...),
    password: str = Form("", description="Document password"),
    response_format: ResponseFormat = Query(ResponseFormat.FILE, description="Return the file or JSON with base64 data"),
    processing_timeout: Optional[int] = Query(ENGINE_CONFIG.timeout_seconds, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Remove password protection.

    Every page is re-authored as an image, so the output text is no longer
    selectable. A missing or wrong password returns 401 with
    `incorrect_password`.

    **Returns:**
    - `unlocked.pdf`, unencrypted
    """
    inputs = await read_uploads([file])
    logger.info(f"Unlocking {inputs[0].name}")

    result = await asyncio.to_thread(unlock_pdf, inputs, password, ENGINE_CONFIG)
    return _build_response(raise_for_result(result), response_format)

def _configure_server_logging():
    """Configure logging with Rich handler and filters for clean output"""
    console = Console(force_terminal=True)

    # Get level from env, default to INFO
    log_level = os.getenv("LOG_LEVEL", ENGINE_CONFIG.log_level).upper()

    class ShutdownFilter(logging.Filter):
        """Filter out shutdown-related log messages"""
        def filter(self, record):
            if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
                return False
            if "CancelledError" in str(record.msg) or "KeyboardInterrupt" in str(record.msg):
                return False
            return True

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=True
    )
    rich_handler.addFilter(ShutdownFilter())

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler])

    # Allow server startup logs
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)

    # Set specific module log levels
    for module_name in ["main", "rich", "engine", "operations", "utils"]:
        logging.getLogger(module_name).setLevel(log_level)

    return console

def _find_free_port(start_port: int = 8000) -> int:
    """Find an available port starting from the given port"""
    import socket

    port = start_port
    max_port = start_port + 100

    while port < max_port:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('localhost', port))
                return port
        except OSError:
            port += 1

    return start_port

server_console = _configure_server_logging()

if __name__ == "__main__":
    free_port = _find_free_port()
    server_console.print(f"[bold green]🚀 Starting PDF Tools server on http://localhost:{free_port}[/bold green]")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=free_port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]🛑 Server stopped.[/bold yellow]")
