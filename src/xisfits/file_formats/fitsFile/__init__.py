"""FITS output for xisfits: single primary HDU writer."""

from .fits_writer import FITSImage, build_header, write_data_block, make_fits_image, write, write_fits_image

__all__ = [
    "FITSImage",
    "build_header",
    "write_data_block",
    "make_fits_image",
    "write",
    "write_fits_image",
]
