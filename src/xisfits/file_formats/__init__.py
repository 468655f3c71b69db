"""
File format support for xisfits.

This package contains:
- xisfFile: XISF reading and sample conversion
- fitsFile: FITS writing
"""

from .xisfFile import XISFConverter, convert_file

__all__ = ['XISFConverter', 'convert_file']
