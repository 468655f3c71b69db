"""
XISF File Package

This package reads XISF (Extensible Image Serialization Format) files and
converts them to FITS format.

XISF is the file format used by PixInsight. Supported input:
- Monolithic XISF 1.0 files, first Image element only
- Attachment and inline (base64/hex) data block locations
- UInt8, UInt16 and UInt32 samples, little or big endian
- Uncompressed data blocks

UInt16 and UInt32 samples are clipped to the signed FITS range.
"""

from .xisf_types import XISFSampleFormat, XISFGeometry, XISFDataBlock, XISFImage
from .xisf_reader import parse_header, read_data_block
from .data_conversion import resolve_bitpix, convert, count_clipped
from .xisf_converter import XISFConverter, ConversionPhase, convert_file

__all__ = [
    "XISFSampleFormat",
    "XISFGeometry",
    "XISFDataBlock",
    "XISFImage",
    "parse_header",
    "read_data_block",
    "resolve_bitpix",
    "convert",
    "count_clipped",
    "XISFConverter",
    "ConversionPhase",
    "convert_file",
]
