"""
xisfits - XISF to FITS image converter.

Converts an astronomical image stored in a monolithic XISF 1.0 file
(PixInsight's container format) into a single-HDU FITS file.

Main Components:
    file_formats: XISF reader, sample conversion and FITS writer
    exceptions: Exception hierarchy for error handling
    config: Configuration management with environment support
    cli: The xisfits command line tool
"""

__version__ = "0.3.0"

from .exceptions import (
    XisfitsError,
    FileProcessingError,
    ParseError,
    ConversionIOError,
    UnsupportedTypeError,
    ConfigurationError,
)

from .config import get_config, ConfigManager, XisfitsConfig

from .file_formats.xisfFile import (
    XISFConverter,
    ConversionPhase,
    XISFImage,
    XISFSampleFormat,
    convert_file,
    parse_header,
    read_data_block,
    convert,
    resolve_bitpix,
)
from .file_formats.fitsFile import FITSImage, build_header, write_data_block, write

__all__ = [
    # Conversion
    'XISFConverter',
    'ConversionPhase',
    'convert_file',
    'parse_header',
    'read_data_block',
    'convert',
    'resolve_bitpix',
    'build_header',
    'write_data_block',
    'write',

    # Data types
    'XISFImage',
    'XISFSampleFormat',
    'FITSImage',

    # Exceptions
    'XisfitsError',
    'FileProcessingError',
    'ParseError',
    'ConversionIOError',
    'UnsupportedTypeError',
    'ConfigurationError',

    # Configuration
    'get_config',
    'ConfigManager',
    'XisfitsConfig',

    '__version__',
]
