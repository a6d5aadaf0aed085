"""
OM_Libs - Open Matte Library Modules

This package contains core functionality for the Open Matte project,
organized into specialized sub-packages:

- ImageEditingLib: Raster models, brush editing and mask history
- MatteLib: Automatic segmentation engine and its background worker
- CompositeLib: Backdrop compositing and export
- SessionLib: Editor settings and the editing session
"""

__version__ = "0.1.0"
