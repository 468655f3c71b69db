"""
Data conversion utilities for XISF to FITS conversion.

This module maps XISF sample formats to FITS BITPIX values and turns raw XISF
sample buffers into big-endian FITS data. FITS integer images are signed, so
UInt16 and UInt32 samples are narrowed with a saturating clip:

    +---------+--------+-------------------------------------+
    | XISF    | BITPIX | transform                           |
    +---------+--------+-------------------------------------+
    | UInt8   | 8      | passthrough                         |
    | UInt16  | 16     | clip to 32767, store as >i2         |
    | UInt32  | 32     | clip to 2147483647, store as >i4    |
    +---------+--------+-------------------------------------+

Any other sample format raises UnsupportedTypeError.
"""

import logging
from typing import Union

import numpy as np

from ...exceptions import ParseError, UnsupportedTypeError
from .xisf_types import XISFSampleFormat

logger = logging.getLogger(__name__)

# sample format -> (BITPIX, FITS dtype)
FITS_CONVERSIONS = {
    XISFSampleFormat.UINT8: (8, np.dtype('u1')),
    XISFSampleFormat.UINT16: (16, np.dtype('>i2')),
    XISFSampleFormat.UINT32: (32, np.dtype('>i4')),
}

_BYTE_ORDER_CHARS = {'little': '<', 'big': '>'}


def _as_sample_format(sample_format: Union[str, XISFSampleFormat]) -> XISFSampleFormat:
    if isinstance(sample_format, XISFSampleFormat):
        return sample_format
    return XISFSampleFormat.from_string(str(sample_format))


def resolve_bitpix(sample_format: Union[str, XISFSampleFormat]) -> int:
    """
    Map an XISF sample format to its FITS BITPIX value.

    Raises:
        UnsupportedTypeError: If the sample format has no FITS conversion
    """
    sample_format = _as_sample_format(sample_format)
    try:
        return FITS_CONVERSIONS[sample_format][0]
    except KeyError:
        raise UnsupportedTypeError(
            f"Sample format {sample_format.value} cannot be converted to FITS "
            f"(supported: {', '.join(f.value for f in FITS_CONVERSIONS)})",
            sample_format=sample_format.value,
            error_code="UNSUPPORTED_SAMPLE_FORMAT",
        )


def _source_array(buffer: bytes, sample_format: XISFSampleFormat, byte_order: str) -> np.ndarray:
    """View a raw XISF buffer as an array of unsigned samples."""
    item_size = sample_format.size()
    if len(buffer) % item_size:
        raise ParseError(
            f"Buffer length {len(buffer)} is not a multiple of the {sample_format.value} "
            f"sample size ({item_size} bytes)",
            error_code="BUFFER_MISALIGNED",
        )
    try:
        order = _BYTE_ORDER_CHARS[byte_order]
    except KeyError:
        raise ParseError(f"Invalid byte order: {byte_order!r}", error_code="BAD_BYTE_ORDER")
    return np.frombuffer(buffer, dtype=np.dtype(f"{order}u{item_size}"))


def convert(buffer: bytes, sample_format: Union[str, XISFSampleFormat], byte_order: str = 'little') -> bytes:
    """
    Convert a raw XISF sample buffer to FITS (big-endian) data.

    Every sample is narrowed independently; values above the signed maximum
    of the target type saturate at that maximum, they never wrap.

    Args:
        buffer: Raw samples as stored in the XISF data block
        sample_format: The XISF sample format of the buffer
        byte_order: Byte order of the stored samples ('little' or 'big')

    Returns:
        bytes: Converted data of the same element count, big-endian

    Raises:
        UnsupportedTypeError: If the sample format has no FITS conversion
        ParseError: If the buffer is not a whole number of samples
    """
    sample_format = _as_sample_format(sample_format)
    resolve_bitpix(sample_format)
    _, fits_dtype = FITS_CONVERSIONS[sample_format]

    if sample_format is XISFSampleFormat.UINT8:
        return bytes(buffer)

    source = _source_array(buffer, sample_format, byte_order)
    limit = np.iinfo(fits_dtype).max
    return np.minimum(source, limit).astype(fits_dtype).tobytes()


def count_clipped(buffer: bytes, sample_format: Union[str, XISFSampleFormat], byte_order: str = 'little') -> int:
    """Return how many samples of buffer exceed the target signed range."""
    sample_format = _as_sample_format(sample_format)
    resolve_bitpix(sample_format)
    if sample_format is XISFSampleFormat.UINT8:
        return 0
    _, fits_dtype = FITS_CONVERSIONS[sample_format]
    source = _source_array(buffer, sample_format, byte_order)
    return int(np.count_nonzero(source > np.iinfo(fits_dtype).max))


def log_data_statistics(buffer: bytes, sample_format: Union[str, XISFSampleFormat],
                        byte_order: str = 'little', warn_on_clip: bool = True) -> int:
    """
    Log statistical information about a raw sample buffer.

    Returns:
        int: Number of samples that convert() will clip
    """
    sample_format = _as_sample_format(sample_format)
    resolve_bitpix(sample_format)
    source = _source_array(buffer, sample_format, byte_order)

    logger.info(f"Data ({sample_format.value}) statistics:")
    logger.info(f"  Size: {source.size} elements")
    if source.size > 0:
        logger.info(f"  Min: {source.min()}")
        logger.info(f"  Max: {source.max()}")

    clipped = count_clipped(buffer, sample_format, byte_order)
    if clipped:
        _, fits_dtype = FITS_CONVERSIONS[sample_format]
        message = (f"{clipped} of {source.size} {sample_format.value} samples exceed "
                   f"{np.iinfo(fits_dtype).max} and will be clipped")
        if warn_on_clip:
            logger.warning(message)
        else:
            logger.info(message)
    return clipped
