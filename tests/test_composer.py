import io

import numpy as np
import pikepdf
import pytest

from engine import composer
from engine.decoder import decode
from engine.image_codec import decode_image
from engine.rasterizer import render
from models.document import ImageFormat, PixelBuffer


def _image_xobject(pdf: pikepdf.Pdf, page_index: int = 0) -> pikepdf.Stream:
    return pdf.pages[page_index].obj.Resources.XObject["/Im0"]


@pytest.mark.parametrize("count", [0, 1, 3])
def test_round_trip_page_count(rgb_pixels, count):
    with composer.new_document() as doc:
        for _ in range(count):
            composer.append_image_page(doc, PixelBuffer(rgb_pixels), ImageFormat.PNG)
        data = composer.serialize(doc)

    with decode(data) as decoded:
        assert decoded.page_count == count


def test_image_page_measures_one_point_per_pixel():
    buffer = PixelBuffer(np.full((23, 37, 3), 128, dtype=np.uint8))
    with composer.new_document() as doc:
        page = composer.append_image_page(doc, buffer, ImageFormat.PNG)
        assert page.size == (37, 23)
        assert page.image is buffer
        data = composer.serialize(doc)

    with decode(data) as decoded:
        assert decoded.page(0).size == (37, 23)
        content = decoded.page(0).source.obj.Contents.read_bytes()
        assert content == b"q 37 0 0 23 0 0 cm /Im0 Do Q"


def test_image_page_with_explicit_size(rgb_pixels):
    with composer.new_document() as doc:
        composer.append_image_page(doc, PixelBuffer(rgb_pixels), ImageFormat.PNG, width=20, height=15.5)
        data = composer.serialize(doc)

    with pikepdf.open(io.BytesIO(data)) as pdf:
        assert [float(v) for v in pdf.pages[0].obj.MediaBox] == [0, 0, 20, 15.5]
        assert b"20 0 0 15.5 0 0 cm" in pdf.pages[0].obj.Contents.read_bytes()
        xobject = _image_xobject(pdf)
        assert (int(xobject.Width), int(xobject.Height)) == (40, 30)


@pytest.mark.parametrize("width, height", [(0, 10), (10, -1)])
def test_image_page_rejects_empty_size(rgb_pixels, width, height):
    with composer.new_document() as doc:
        with pytest.raises(ValueError):
            composer.append_image_page(doc, PixelBuffer(rgb_pixels), ImageFormat.PNG, width=width, height=height)


def test_jpeg_bytes_are_embedded_unchanged(make_image):
    jpeg = make_image("JPEG", (40, 30), (0, 200, 100))
    pixels = decode_image(jpeg, ImageFormat.JPEG)
    with composer.new_document() as doc:
        composer.append_image_page(doc, pixels, ImageFormat.JPEG, encoded=jpeg)
        data = composer.serialize(doc)

    with pikepdf.open(io.BytesIO(data)) as pdf:
        xobject = _image_xobject(pdf)
        assert xobject.Filter == pikepdf.Name.DCTDecode
        assert xobject.read_raw_bytes() == jpeg


def test_jpeg_is_reencoded_when_bytes_do_not_match(make_image, rgb_pixels):
    other = make_image("JPEG", (10, 10))
    with composer.new_document() as doc:
        composer.append_image_page(doc, PixelBuffer(rgb_pixels), ImageFormat.JPEG, encoded=other)
        data = composer.serialize(doc)

    with pikepdf.open(io.BytesIO(data)) as pdf:
        xobject = _image_xobject(pdf)
        assert xobject.read_raw_bytes() != other
        assert (int(xobject.Width), int(xobject.Height)) == (40, 30)


def test_png_alpha_becomes_soft_mask():
    pixels = np.zeros((10, 12, 4), dtype=np.uint8)
    pixels[..., 0] = 255
    pixels[..., 3] = 100
    with composer.new_document() as doc:
        composer.append_image_page(doc, PixelBuffer(pixels), ImageFormat.PNG)
        data = composer.serialize(doc)

    with pikepdf.open(io.BytesIO(data)) as pdf:
        xobject = _image_xobject(pdf)
        assert xobject.Filter == pikepdf.Name.FlateDecode
        assert xobject.ColorSpace == pikepdf.Name.DeviceRGB
        mask = xobject.SMask
        assert mask.ColorSpace == pikepdf.Name.DeviceGray
        assert mask.read_bytes() == bytes([100]) * (10 * 12)


def test_image_page_renders_its_pixels(rgb_pixels):
    with composer.new_document() as doc:
        composer.append_image_page(doc, PixelBuffer(rgb_pixels), ImageFormat.PNG)
        with decode(composer.serialize(doc)) as decoded:
            rendered = render(decoded.page(0), 1.0).data

    assert rendered.shape == (30, 40, 3)
    left, right = rendered[15, 5].astype(int), rendered[15, 35].astype(int)
    assert left[0] > 200 and left[2] < 60
    assert right[2] > 200 and right[0] < 60


def test_append_page_copies_geometry_and_content(three_page_pdf, labels_of):
    with decode(three_page_pdf) as source, composer.new_document() as doc:
        copied = composer.append_page(doc, source.page(2))
        composer.append_page(doc, source.page(0))
        assert copied.index == 0
        assert copied.size == (612, 792)
        assert copied.owner is doc
        data = composer.serialize(doc)

    assert labels_of(data) == ["A-3", "A-1"]


def test_serialized_output_is_not_encrypted(encrypted_pdf):
    from conftest import PASSWORD

    with decode(encrypted_pdf, password=PASSWORD) as source, composer.new_document() as doc:
        for page in source:
            composer.append_page(doc, page)
        data = composer.serialize(doc)

    with decode(data) as decoded:
        assert not decoded.is_encrypted
        assert decoded.page_count == 2


def test_serialize_is_deterministic(three_page_pdf):
    outputs = []
    for _ in range(2):
        with decode(three_page_pdf) as source, composer.new_document() as doc:
            for page in source:
                composer.append_page(doc, page)
            outputs.append(composer.serialize(doc))

    assert outputs[0] == outputs[1]
