"""Pytest configuration and shared fixtures for PDF Tools tests."""

import io
import re
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pikepdf
import pytest
from PIL import Image

from operations import InputFile

PASSWORD = "secret"


def _page_content(label: str, fill: Optional[Tuple[float, float, float]]) -> bytes:
    parts = []
    if fill is not None:
        r, g, b = fill
        parts.append(f"{r} {g} {b} rg 0 0 50 50 re f")
    parts.append(f"BT /F1 12 Tf 10 60 Td ({label}) Tj ET")
    return "\n".join(parts).encode("ascii")


def build_pdf(
    page_sizes: Sequence[Tuple[float, float]] = ((200, 300),),
    prefix: str = "P",
    rotate: Optional[int] = None,
    fill: Optional[Tuple[float, float, float]] = None,
    encryption: Optional[pikepdf.Encryption] = None,
) -> bytes:
    """PDF whose page i shows the text ``{prefix}-{i + 1}``."""
    pdf = pikepdf.Pdf.new()
    font = pdf.make_indirect(pikepdf.Dictionary(
        Type=pikepdf.Name.Font,
        Subtype=pikepdf.Name.Type1,
        BaseFont=pikepdf.Name.Helvetica,
    ))
    for index, size in enumerate(page_sizes):
        page = pdf.add_blank_page(page_size=size)
        page.obj.Resources = pikepdf.Dictionary(Font=pikepdf.Dictionary(F1=font))
        page.obj.Contents = pdf.make_stream(_page_content(f"{prefix}-{index + 1}", fill))
        if rotate is not None:
            page.obj.Rotate = rotate

    buffer = io.BytesIO()
    if encryption is None:
        pdf.save(buffer)
    else:
        pdf.save(buffer, encryption=encryption)
    pdf.close()
    return buffer.getvalue()


def build_image(
    fmt: str = "PNG",
    size: Tuple[int, int] = (40, 30),
    color=(200, 30, 30),
    mode: str = "RGB",
) -> bytes:
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def page_labels(data: bytes) -> List[str]:
    """Text label drawn on each page of a PDF built by build_pdf."""
    labels = []
    with pikepdf.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            content = page.obj.Contents.read_bytes()
            match = re.search(rb"\((\w+-\d+)\) Tj", content)
            labels.append(match.group(1).decode("ascii") if match else None)
    return labels


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    return build_image


@pytest.fixture
def labels_of() -> Callable[[bytes], List[str]]:
    return page_labels


@pytest.fixture
def three_page_pdf() -> bytes:
    return build_pdf([(200, 300), (300, 200), (612, 792)], prefix="A")


@pytest.fixture
def encrypted_pdf() -> bytes:
    return build_pdf(
        [(200, 300), (250, 250)],
        prefix="E",
        encryption=pikepdf.Encryption(user=PASSWORD, owner="owner-" + PASSWORD),
    )


@pytest.fixture
def owner_only_pdf() -> bytes:
    """Encrypted with an empty user password (opens without one)."""
    return build_pdf(
        [(200, 300)],
        prefix="O",
        encryption=pikepdf.Encryption(user="", owner="owner-" + PASSWORD),
    )


@pytest.fixture
def as_input() -> Callable[..., InputFile]:
    def _as_input(data: bytes, name: str = "input.pdf") -> InputFile:
        return InputFile(name=name, data=data)
    return _as_input


@pytest.fixture
def rgb_pixels() -> np.ndarray:
    pixels = np.zeros((30, 40, 3), dtype=np.uint8)
    pixels[:, :20] = (255, 0, 0)
    pixels[:, 20:] = (0, 0, 255)
    return pixels
