"""
PDF Operator Constants

Content stream operators emitted by the document composer.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# Graphics State Operators (PDF spec 8.4.4)
# ==============================================================================
OP_SAVE_STATE = b'q'                 # Save graphics state
OP_RESTORE_STATE = b'Q'              # Restore graphics state
OP_CTM = b'cm'                       # Modify current transformation matrix

# ==============================================================================
# XObject Operators (PDF spec 8.8)
# ==============================================================================
OP_DO = b'Do'                        # Paint XObject

# Resource name given to the single image drawn on a fabricated page
IMAGE_RESOURCE_NAME = "/Im0"
