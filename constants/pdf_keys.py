"""
PDF Dictionary Keys and Name Constants
"""

# Page Tree Keys
KEY_TYPE = "/Type"
KEY_PARENT = "/Parent"
KEY_MEDIA_BOX = "/MediaBox"
KEY_CROP_BOX = "/CropBox"
KEY_ROTATE = "/Rotate"
KEY_RESOURCES = "/Resources"
KEY_CONTENTS = "/Contents"
VAL_PAGE = "/Page"

# Attributes a page may inherit from its ancestors in the page tree
INHERITABLE_PAGE_KEYS = (KEY_MEDIA_BOX, KEY_CROP_BOX, KEY_ROTATE, KEY_RESOURCES)

# Resource Dictionary Keys
KEY_XOBJECT = "/XObject"

# Image XObject Properties
KEY_SUBTYPE = "/Subtype"
VAL_XOBJECT = "/XObject"
VAL_IMAGE = "/Image"
KEY_WIDTH = "/Width"
KEY_HEIGHT = "/Height"
KEY_COLOR_SPACE = "/ColorSpace"
KEY_BITS_PER_COMPONENT = "/BitsPerComponent"
KEY_SOFT_MASK = "/SMask"
VAL_DEVICE_RGB = "/DeviceRGB"
VAL_DEVICE_GRAY = "/DeviceGray"
VAL_DCT_DECODE = "/DCTDecode"
VAL_FLATE_DECODE = "/FlateDecode"
