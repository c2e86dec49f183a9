"""PDF page geometry utilities: inherited attributes, boxes and rotation."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import pikepdf

from constants.pdf_keys import (
    INHERITABLE_PAGE_KEYS,
    KEY_CROP_BOX,
    KEY_MEDIA_BOX,
    KEY_PARENT,
    KEY_ROTATE,
)

logger = logging.getLogger(__name__)

# US Letter, used when a page tree carries no MediaBox at all
DEFAULT_MEDIA_BOX = (0.0, 0.0, 612.0, 792.0)
# Guards against cycles in damaged page trees
MAX_PAGE_TREE_DEPTH = 64


@dataclass(frozen=True)
class PageBox:
    """Rectangle in PDF user space (lower-left / upper-right corners)."""
    llx: float
    lly: float
    urx: float
    ury: float

    @property
    def width(self) -> float:
        return abs(self.urx - self.llx)

    @property
    def height(self) -> float:
        return abs(self.ury - self.lly)

    def intersect(self, other: 'PageBox') -> 'PageBox':
        return PageBox(
            llx=max(min(self.llx, self.urx), min(other.llx, other.urx)),
            lly=max(min(self.lly, self.ury), min(other.lly, other.ury)),
            urx=min(max(self.llx, self.urx), max(other.llx, other.urx)),
            ury=min(max(self.lly, self.ury), max(other.lly, other.ury)),
        )

    @classmethod
    def from_array(cls, array) -> Optional['PageBox']:
        """Build from a 4-element PDF array, or None if the array is unusable."""
        try:
            values = [float(v) for v in array]
        except (TypeError, ValueError):
            return None
        if len(values) != 4:
            return None
        return cls(*values)


def resolve_inherited(page_obj: pikepdf.Dictionary, key: str) -> Optional[pikepdf.Object]:
    """
    Look up a page attribute, walking /Parent links for inheritable keys.

    Args:
        page_obj: Page dictionary
        key: Attribute name such as "/MediaBox"

    Returns:
        The attribute value or None if neither the page nor an ancestor has it
    """
    node = page_obj
    for _ in range(MAX_PAGE_TREE_DEPTH):
        if key in node:
            return node[key]
        if KEY_PARENT not in node:
            return None
        node = node[KEY_PARENT]
    logger.warning(f"Page tree deeper than {MAX_PAGE_TREE_DEPTH} levels while resolving {key}")
    return None


def push_inherited_attributes(page_obj: pikepdf.Dictionary) -> None:
    """
    Copy inheritable attributes from the page tree onto the page itself.

    Pages copied into another document lose their original ancestors, so
    anything they inherit must live on the page dictionary.
    """
    for key in INHERITABLE_PAGE_KEYS:
        if key in page_obj:
            continue
        value = resolve_inherited(page_obj, key)
        if value is not None:
            page_obj[key] = value


def normalize_rotation(value) -> int:
    """Clamp a /Rotate value to one of 0, 90, 180, 270."""
    try:
        angle = int(value)
    except (TypeError, ValueError):
        return 0
    if angle % 90 != 0:
        logger.warning(f"Ignoring /Rotate {angle}: not a multiple of 90")
        return 0
    return angle % 360


def visible_box(page_obj: pikepdf.Dictionary) -> PageBox:
    """CropBox clipped to MediaBox, falling back to MediaBox then US Letter."""
    media = PageBox.from_array(resolve_inherited(page_obj, KEY_MEDIA_BOX) or [])
    if media is None:
        media = PageBox(*DEFAULT_MEDIA_BOX)
    crop_value = resolve_inherited(page_obj, KEY_CROP_BOX)
    crop = PageBox.from_array(crop_value) if crop_value is not None else None
    if crop is None:
        return media
    clipped = crop.intersect(media)
    if clipped.urx <= clipped.llx or clipped.ury <= clipped.lly:
        logger.warning("CropBox lies outside MediaBox, using MediaBox")
        return media
    return clipped


def visible_page_size(page_obj: pikepdf.Dictionary) -> Tuple[float, float]:
    """
    Page width and height in points as a viewer displays them.

    Returns:
        (width, height) with the sides swapped for /Rotate 90 and 270
    """
    box = visible_box(page_obj)
    rotation = normalize_rotation(resolve_inherited(page_obj, KEY_ROTATE) or 0)
    if rotation in (90, 270):
        return box.height, box.width
    return box.width, box.height
