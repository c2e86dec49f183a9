import io

import pikepdf
import pytest

from engine import composer
from engine.decoder import decode
from engine.errors import IncorrectPassword, MalformedDocument

from conftest import PASSWORD


def test_decode_reads_page_count_and_sizes(three_page_pdf):
    with decode(three_page_pdf) as doc:
        assert doc.page_count == 3
        assert [page.size for page in doc] == [(200, 300), (300, 200), (612, 792)]
        assert not doc.is_encrypted


def test_rotated_pages_report_visible_size(make_pdf):
    with decode(make_pdf([(200, 300)], rotate=90)) as doc:
        assert doc.page(0).size == (300, 200)
    with decode(make_pdf([(200, 300)], rotate=-180)) as doc:
        assert doc.page(0).size == (200, 300)


def test_crop_box_limits_visible_size(make_pdf):
    pdf = pikepdf.open(io.BytesIO(make_pdf([(200, 300)])))
    pdf.pages[0].obj.CropBox = pikepdf.Array([10, 10, 110, 60])
    buffer = io.BytesIO()
    pdf.save(buffer)

    with decode(buffer.getvalue()) as doc:
        assert doc.page(0).size == (100, 50)


def test_inherited_media_box_is_resolved(make_pdf):
    pdf = pikepdf.open(io.BytesIO(make_pdf([(200, 300), (200, 300)])))
    pdf.Root.Pages.MediaBox = pikepdf.Array([0, 0, 400, 500])
    for page in pdf.pages:
        del page.obj["/MediaBox"]
    buffer = io.BytesIO()
    pdf.save(buffer)

    with decode(buffer.getvalue()) as doc:
        assert [page.size for page in doc] == [(400, 500), (400, 500)]
        assert "/MediaBox" in doc.page(1).source.obj


@pytest.mark.parametrize("data", [
    b"",
    b"hello world, definitely not a pdf",
    b"%PDF-1.7\n",
    b"%PDF-1.4\n1 0 obj << /Type /Catalog",
])
def test_malformed_input_is_rejected(data):
    with pytest.raises(MalformedDocument):
        decode(data)


def test_truncated_document_is_rejected(three_page_pdf):
    with pytest.raises(MalformedDocument):
        decode(three_page_pdf[:40])


def test_missing_cross_reference_table_is_recovered(three_page_pdf, labels_of):
    start = three_page_pdf.rindex(b"\nxref\n")
    end = three_page_pdf.rindex(b"\ntrailer")
    damaged = three_page_pdf[:start] + three_page_pdf[end:]

    with decode(damaged) as doc:
        assert doc.page_count == 3
        assert labels_of(composer.serialize(doc)) == ["A-1", "A-2", "A-3"]


def test_encrypted_without_password_is_incorrect_password(encrypted_pdf):
    with pytest.raises(IncorrectPassword):
        decode(encrypted_pdf)


def test_encrypted_with_wrong_password_is_incorrect_password(encrypted_pdf):
    with pytest.raises(IncorrectPassword):
        decode(encrypted_pdf, password="not-" + PASSWORD)


def test_encrypted_with_password_decodes(encrypted_pdf):
    with decode(encrypted_pdf, password=PASSWORD) as doc:
        assert doc.is_encrypted
        assert doc.page_count == 2
        assert b"(E-1) Tj" in doc.page(0).source.obj.Contents.read_bytes()


def test_owner_password_only_opens_without_password(owner_only_pdf):
    with decode(owner_only_pdf) as doc:
        assert doc.is_encrypted
        assert doc.page_count == 1


def test_error_does_not_echo_password(encrypted_pdf):
    with pytest.raises(IncorrectPassword) as exc_info:
        decode(encrypted_pdf, password="wrong-guess")
    assert "wrong-guess" not in str(exc_info.value)
    assert exc_info.value.code == "incorrect_password"


def test_decode_serialize_decode_keeps_page_count(three_page_pdf):
    with decode(three_page_pdf) as first:
        copy = composer.new_document()
        for page in first:
            composer.append_page(copy, page)
        data = composer.serialize(copy)
        copy.close()

    with decode(data) as second:
        assert second.page_count == 3
