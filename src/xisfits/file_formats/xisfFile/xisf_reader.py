"""
XISF Reader

Reads the header and the raw pixel data block of a monolithic XISF 1.0 file.

A monolithic XISF file starts with a 16 byte binary preamble:
- 8 bytes: signature "XISF0100"
- 4 bytes: XML header length (little endian)
- 4 bytes: reserved

followed by the UTF-8 XML header and the attached data blocks. Only the
first Image element is read. Its geometry, sampleFormat and location
attributes are required; nothing is defaulted.
"""

import base64
import binascii
import logging
import os
import struct
import xml.etree.ElementTree as ET

from ...exceptions import ConversionIOError, ParseError
from ...types import FilePath
from .xisf_types import XISFDataBlock, XISFGeometry, XISFImage, XISFSampleFormat

logger = logging.getLogger(__name__)

XISF_SIGNATURE = b"XISF0100"
PREAMBLE_SIZE = 16
XISF_NAMESPACE = {'xisf': 'http://www.pixinsight.com/xisf'}

_INLINE_DECODERS = {
    'base64': lambda text: base64.b64decode(text, validate=True),
    'hex': lambda text: base64.b16decode(text.upper()),
}
_BYTE_ORDERS = ('little', 'big')


def _read_xml_header(f, file_path: str) -> ET.Element:
    """Read the binary preamble and parse the XML header that follows it."""
    preamble = f.read(PREAMBLE_SIZE)
    if len(preamble) < PREAMBLE_SIZE:
        raise ParseError(f"File too short for an XISF preamble: {len(preamble)} bytes",
                         file_path=file_path, error_code="SHORT_PREAMBLE")

    signature = preamble[:8]
    if signature != XISF_SIGNATURE:
        raise ParseError(f"Invalid XISF signature: {signature!r}",
                         file_path=file_path, error_code="BAD_SIGNATURE")

    xml_length, reserved = struct.unpack('<II', preamble[8:])
    logger.debug(f"XML length: {xml_length}")
    logger.debug(f"Reserved: {reserved}")

    xml_content = f.read(xml_length)
    if len(xml_content) < xml_length:
        raise ParseError(f"XML header truncated: got {len(xml_content)} of {xml_length} bytes",
                         file_path=file_path, error_code="SHORT_HEADER")

    try:
        return ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise ParseError(f"Invalid XML in XISF header: {e}",
                         file_path=file_path, error_code="BAD_XML")


def _find_image_element(root: ET.Element, file_path: str) -> ET.Element:
    image_elem = root.find('.//xisf:Image', XISF_NAMESPACE)
    if image_elem is None:
        # Fallback: try without namespace in case it's not namespaced
        image_elem = root.find('.//Image')
    if image_elem is None:
        raise ParseError("No Image element found in XISF header",
                         file_path=file_path, error_code="NO_IMAGE")
    return image_elem


def _require_attribute(image_elem: ET.Element, name: str, file_path: str) -> str:
    value = image_elem.get(name)
    if value is None or not value.strip():
        raise ParseError(f"Image element has no {name} attribute",
                         file_path=file_path, error_code="MISSING_ATTRIBUTE", attribute=name)
    return value.strip()


def _parse_location(location_str: str, image_elem: ET.Element, file_path: str) -> XISFDataBlock:
    """
    Parse the location attribute.

    Supported forms are "attachment:<offset>:<length>" and
    "inline:<encoding>", where the encoded data is the element text.
    """
    parts = location_str.split(':')
    method = parts[0]

    if method == 'attachment':
        if len(parts) != 3:
            raise ParseError(f"Invalid attachment location: {location_str!r}",
                             file_path=file_path, error_code="BAD_LOCATION")
        try:
            offset, length = int(parts[1]), int(parts[2])
        except ValueError:
            raise ParseError(f"Invalid attachment location: {location_str!r}",
                             file_path=file_path, error_code="BAD_LOCATION")
        if offset < PREAMBLE_SIZE or length <= 0:
            raise ParseError(f"Invalid attachment location parameters: {location_str!r}",
                             file_path=file_path, error_code="BAD_LOCATION")
        return XISFDataBlock(method=method, offset=offset, length=length)

    if method == 'inline':
        if len(parts) != 2 or parts[1] not in _INLINE_DECODERS:
            raise ParseError(f"Invalid inline location: {location_str!r}",
                             file_path=file_path, error_code="BAD_LOCATION")
        text = ''.join((image_elem.text or '').split())
        return XISFDataBlock(method=method, encoding=parts[1], inline_text=text)

    raise ParseError(f"Image location type '{method}' not supported",
                     file_path=file_path, error_code="UNSUPPORTED_LOCATION")


def parse_header(path: FilePath) -> XISFImage:
    """
    Parse the XISF header of a file and describe its first image.

    Args:
        path: Path to the XISF file

    Returns:
        XISFImage: Geometry, sample format, byte order and data block location

    Raises:
        ConversionIOError: If the file cannot be opened or read
        ParseError: If the preamble, XML or a required attribute is missing or malformed
    """
    file_path = os.fspath(path)
    try:
        with open(file_path, 'rb') as f:
            root = _read_xml_header(f, file_path)
    except OSError as e:
        raise ConversionIOError(f"Cannot read XISF file {file_path}: {e}",
                                file_path=file_path, error_code="READ_FAILED")

    image_elem = _find_image_element(root, file_path)

    geometry_str = _require_attribute(image_elem, 'geometry', file_path)
    sample_format_str = _require_attribute(image_elem, 'sampleFormat', file_path)
    location_str = _require_attribute(image_elem, 'location', file_path)

    try:
        geometry = XISFGeometry(geometry_str)
        sample_format = XISFSampleFormat.from_string(sample_format_str)
    except ParseError as e:
        e.file_path = file_path
        raise

    data_block = _parse_location(location_str, image_elem, file_path)

    if image_elem.get('compression'):
        raise ParseError(f"Compressed data blocks are not supported: {image_elem.get('compression')}",
                         file_path=file_path, error_code="COMPRESSED_BLOCK")
    if image_elem.get('checksum'):
        logger.debug(f"Ignoring data block checksum {image_elem.get('checksum')}")

    byte_order = image_elem.get('byteOrder', 'little')
    if byte_order not in _BYTE_ORDERS:
        raise ParseError(f"Invalid byteOrder: {byte_order!r}",
                         file_path=file_path, error_code="BAD_BYTE_ORDER")

    image = XISFImage(
        geometry=geometry,
        sample_format=sample_format,
        data_block=data_block,
        byte_order=byte_order,
        color_space=image_elem.get('colorSpace', 'Gray'),
    )

    if data_block.is_attachment and data_block.length != image.expected_length:
        raise ParseError(
            f"Data block length {data_block.length} does not match geometry "
            f"({image.expected_length} bytes expected)",
            file_path=file_path, error_code="LENGTH_MISMATCH")

    logger.info(f"Image geometry: {geometry}")
    logger.info(f"Sample format: {sample_format.value}")
    logger.debug(f"Color space: {image.color_space}")
    logger.debug(f"Byte order: {byte_order}")
    logger.debug(f"Location: {location_str}")
    return image


def _decode_inline(image: XISFImage, file_path: str) -> bytes:
    block = image.data_block
    try:
        data = _INLINE_DECODERS[block.encoding](block.inline_text)
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"Cannot decode inline {block.encoding} data: {e}",
                         file_path=file_path, error_code="BAD_INLINE_DATA")
    if len(data) != image.expected_length:
        raise ParseError(f"Inline data has {len(data)} bytes, expected {image.expected_length}",
                         file_path=file_path, error_code="LENGTH_MISMATCH")
    return data


def read_data_block(image: XISFImage, path: FilePath) -> bytes:
    """
    Read the raw pixel data block of an image.

    Args:
        image: Image description returned by parse_header
        path: Path to the same XISF file

    Returns:
        bytes: Exactly image.expected_length bytes, in the file's sample byte order

    Raises:
        ConversionIOError: If the file cannot be read or is shorter than the block
        ParseError: If inline data cannot be decoded
    """
    file_path = os.fspath(path)
    block = image.data_block

    if not block.is_attachment:
        data = _decode_inline(image, file_path)
        logger.debug(f"Decoded {len(data)} bytes of inline {block.encoding} data")
        return data

    try:
        with open(file_path, 'rb') as f:
            f.seek(block.offset)
            data = f.read(block.length)
    except OSError as e:
        raise ConversionIOError(f"Cannot read data block from {file_path}: {e}",
                                file_path=file_path, error_code="READ_FAILED")

    if len(data) < block.length:
        raise ConversionIOError(
            f"Insufficient data: got {len(data)} bytes at offset {block.offset}, expected {block.length}",
            file_path=file_path, error_code="SHORT_DATA_BLOCK")

    logger.debug(f"Read {len(data)} bytes of binary data at offset {block.offset}")
    return data
