"""
Engine error taxonomy.

Every failure the engine reports to callers is one of these types. Distinct
kinds are never collapsed: in particular ``IncorrectPassword`` drives a
retry prompt in the outer surfaces, unlike a generic decode failure.
"""

from typing import Optional


class PdfToolsError(Exception):
    """Base class for all typed engine failures"""

    code = "pdf_tools_error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Serializable form used by the HTTP and CLI surfaces."""
        return {
            'error': self.code,
            'message': self.message,
            'detail': self.detail,
        }


class MalformedDocument(PdfToolsError):
    """Input is not a structurally valid PDF"""

    code = "malformed_document"


class IncorrectPassword(PdfToolsError):
    """Input is encrypted and the credential is missing or wrong"""

    code = "incorrect_password"


class UnsupportedImageFormat(PdfToolsError):
    """Image bytes cannot be decoded as the declared format"""

    code = "unsupported_image_format"


class RenderError(PdfToolsError):
    """Page content could not be rasterized"""

    code = "render_error"


class InputTooLarge(PdfToolsError):
    """Input exceeds the configured size limit"""

    code = "input_too_large"


class InsufficientInput(PdfToolsError):
    """Operation precondition on the number of inputs is violated"""

    code = "insufficient_input"


class EmptyInput(InsufficientInput):
    """Operation received no inputs at all"""

    code = "empty_input"


__all__ = [
    'PdfToolsError',
    'MalformedDocument',
    'IncorrectPassword',
    'UnsupportedImageFormat',
    'RenderError',
    'InputTooLarge',
    'InsufficientInput',
    'EmptyInput',
]
