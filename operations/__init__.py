"""
Document operations.

Each operation takes named input byte streams and returns an
OperationResult; typed engine failures are reported in the result.
"""

from operations.common import InputFile, page_file_name
from operations.merge import merge_pdfs
from operations.split import split_pdf
from operations.pdf_to_image import pdf_to_images
from operations.image_to_pdf import images_to_pdf
from operations.unlock import unlock_pdf

__all__ = [
    'InputFile',
    'page_file_name',
    'merge_pdfs',
    'split_pdf',
    'pdf_to_images',
    'images_to_pdf',
    'unlock_pdf',
]
