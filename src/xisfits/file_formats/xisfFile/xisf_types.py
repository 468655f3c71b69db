"""
XISF data types and enums.

This module contains the data type definitions used by the XISF reader and
converter to avoid circular import issues.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ...exceptions import ParseError


class XISFSampleFormat(Enum):
    """Enumeration of XISF sample formats."""

    UINT8 = "UInt8"
    UINT16 = "UInt16"
    UINT32 = "UInt32"
    UINT64 = "UInt64"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    COMPLEX32 = "Complex32"
    COMPLEX64 = "Complex64"

    def size(self) -> int:
        """Return the size in bytes for this sample format."""
        return _SAMPLE_SIZES[self]

    @classmethod
    def from_string(cls, value: str) -> 'XISFSampleFormat':
        """Create XISFSampleFormat from the sampleFormat attribute value."""
        for format_type in cls:
            if format_type.value == value:
                return format_type
        raise ParseError(f"Unknown sample format: {value!r}", error_code="BAD_SAMPLE_FORMAT")


_SAMPLE_SIZES = {
    XISFSampleFormat.UINT8: 1,
    XISFSampleFormat.UINT16: 2,
    XISFSampleFormat.UINT32: 4,
    XISFSampleFormat.UINT64: 8,
    XISFSampleFormat.INT8: 1,
    XISFSampleFormat.INT16: 2,
    XISFSampleFormat.INT32: 4,
    XISFSampleFormat.INT64: 8,
    XISFSampleFormat.FLOAT32: 4,
    XISFSampleFormat.FLOAT64: 8,
    XISFSampleFormat.COMPLEX32: 8,   # 2 * 4 bytes
    XISFSampleFormat.COMPLEX64: 16,  # 2 * 8 bytes
}


class XISFGeometry:
    """Represents XISF image geometry parsed from colon-separated format."""

    def __init__(self, geometry_str: str):
        """
        Initialize from geometry string.

        Args:
            geometry_str: Colon-separated sizes followed by the channel count,
                like "1024:768:1" or "1024:768:3"

        Raises:
            ParseError: If the string is not a list of positive integers with
                at least one dimension and a channel count
        """
        self.geometry_str = geometry_str
        try:
            parts = [int(x) for x in geometry_str.split(':')]
        except ValueError:
            raise ParseError(f"Invalid geometry: {geometry_str!r} (non-integer component)",
                             error_code="BAD_GEOMETRY")

        if len(parts) < 2:
            raise ParseError(f"Invalid geometry: {geometry_str!r} (need at least size:channels)",
                             error_code="BAD_GEOMETRY")
        if any(p <= 0 for p in parts):
            raise ParseError(f"Invalid geometry: {geometry_str!r} (components must be positive)",
                             error_code="BAD_GEOMETRY")

        self.dimensions = tuple(parts[:-1])
        self._channels = parts[-1]

    @property
    def width(self) -> int:
        """Image width (first dimension)."""
        return self.dimensions[0]

    @property
    def height(self) -> int:
        """Image height (second dimension, 1 for one-dimensional images)."""
        return self.dimensions[1] if len(self.dimensions) > 1 else 1

    @property
    def channels(self) -> int:
        """Number of channels (last geometry component)."""
        return self._channels

    @property
    def total_pixels(self) -> int:
        """Total number of samples across all dimensions and channels."""
        return self.channel_size() * self.channels

    def channel_size(self) -> int:
        """Calculate size of a single channel in pixels."""
        size = 1
        for dim in self.dimensions:
            size *= dim
        return size

    def to_fits_axes(self) -> Tuple[int, ...]:
        """
        Return NAXIS1..NAXISn sizes.

        NAXIS1 is the width, NAXIS2 the height, further dimensions follow in
        order and the channel axis comes last when there is more than one
        channel. XISF planar storage already matches this order.
        """
        if self.channels == 1:
            return self.dimensions
        return self.dimensions + (self.channels,)

    def __eq__(self, other) -> bool:
        if not isinstance(other, XISFGeometry):
            return NotImplemented
        return self.dimensions == other.dimensions and self.channels == other.channels

    def __hash__(self) -> int:
        return hash((self.dimensions, self.channels))

    def __str__(self) -> str:
        return f"XISFGeometry({self.geometry_str})"

    def __repr__(self) -> str:
        return (f"XISFGeometry(width={self.width}, height={self.height}, "
                f"channels={self.channels}, total_pixels={self.total_pixels})")


@dataclass(frozen=True)
class XISFDataBlock:
    """Location of an image data block: attached at offset/length, or inline text."""
    method: str
    offset: int = 0
    length: int = 0
    encoding: Optional[str] = None
    inline_text: Optional[str] = None

    @property
    def is_attachment(self) -> bool:
        return self.method == "attachment"


@dataclass(frozen=True)
class XISFImage:
    """An XISF Image element as needed for conversion."""
    geometry: XISFGeometry
    sample_format: XISFSampleFormat
    data_block: XISFDataBlock
    byte_order: str = "little"
    color_space: str = "Gray"

    @property
    def width(self) -> int:
        return self.geometry.width

    @property
    def height(self) -> int:
        return self.geometry.height

    @property
    def channels(self) -> int:
        return self.geometry.channels

    @property
    def expected_length(self) -> int:
        """Data block size in bytes implied by geometry and sample format."""
        return self.geometry.total_pixels * self.sample_format.size()
