import numpy as np
import pytest

from engine import rasterizer
from engine.decoder import decode
from engine.rasterizer import render, rendered_size


@pytest.mark.parametrize("size, scale, expected", [
    ((612, 792), 2.0, (1224, 1584)),
    ((100.5, 10.25), 2.0, (201, 21)),
    ((100.2, 50.1), 1.0, (101, 51)),
    ((0.1, 0.1), 2.0, (1, 1)),
])
def test_rendered_size_rounds_up(size, scale, expected):
    assert rendered_size(size[0], size[1], scale) == expected


def test_render_produces_scaled_rgb_buffer(make_pdf):
    with decode(make_pdf([(200, 100)])) as doc:
        pixels = render(doc.page(0), 2.0)

    assert (pixels.width, pixels.height) == (400, 200)
    assert pixels.channels == 3


def test_render_is_deterministic(make_pdf):
    data = make_pdf([(120, 90)], fill=(0, 0.5, 1))
    with decode(data) as doc:
        first = render(doc.page(0), 1.5)
        second = render(doc.page(0), 1.5)

    assert first.tobytes() == second.tobytes()


def test_render_draws_page_content(make_pdf):
    # Red 50x50 square in the lower-left corner of a 100x100 page
    with decode(make_pdf([(100, 100)], fill=(1, 0, 0))) as doc:
        pixels = render(doc.page(0), 1.0).data

    red_corner = pixels[75, 25].astype(int)
    blank_corner = pixels[10, 90].astype(int)
    assert red_corner[0] > 200 and red_corner[1] < 60 and red_corner[2] < 60
    assert np.all(blank_corner > 240)


def test_render_swaps_dimensions_for_rotated_pages(make_pdf):
    with decode(make_pdf([(200, 100)], rotate=90)) as doc:
        pixels = render(doc.page(0), 1.0)

    assert (pixels.width, pixels.height) == (100, 200)


def test_render_uses_default_scale(make_pdf):
    with decode(make_pdf([(50, 40)])) as doc:
        pixels = render(doc.page(0))

    assert (pixels.width, pixels.height) == (100, 80)


@pytest.mark.parametrize("scale", [0, -1.0, float("nan"), float("inf")])
def test_render_rejects_invalid_scale(make_pdf, scale):
    with decode(make_pdf([(50, 50)])) as doc:
        with pytest.raises(ValueError):
            render(doc.page(0), scale)


def test_render_encrypted_page_after_decrypting(encrypted_pdf):
    from conftest import PASSWORD

    with decode(encrypted_pdf, password=PASSWORD) as doc:
        pixels = render(doc.page(1), 1.0)

    assert (pixels.width, pixels.height) == (250, 250)


def test_renderer_uses_the_pymupdf_module_name():
    assert rasterizer.pymupdf.__name__ == "pymupdf"
    assert not hasattr(rasterizer, "fitz")
