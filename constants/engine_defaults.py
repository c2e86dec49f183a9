"""
Fixed engine defaults shared by the rasterizer, codec and orchestrator.
"""

# Rasterization
DEFAULT_RENDER_SCALE = 2.0            # pdf→image and unlock render scale
RENDER_BACKGROUND = (255, 255, 255)   # Pixels not covered by page content

# Image encoding
DEFAULT_JPEG_QUALITY = 0.95           # Real in (0, 1], mapped to Pillow's 1-100

# Output naming
PAGE_NAME_TEMPLATE = "page_{number:03d}{suffix}"
MERGED_FILE_NAME = "merged.pdf"
SPLIT_FOLDER_NAME = "split_pages"
IMAGES_FOLDER_NAME = "pdf_images"
IMAGES_PDF_FILE_NAME = "images.pdf"
UNLOCKED_FILE_NAME = "unlocked.pdf"

# Media types
MEDIA_TYPE_PDF = "application/pdf"
MEDIA_TYPE_JPEG = "image/jpeg"
MEDIA_TYPE_PNG = "image/png"
MEDIA_TYPE_ZIP = "application/zip"
