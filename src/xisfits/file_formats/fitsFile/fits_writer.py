"""
FITS Writer

Builds a single primary HDU: 80 byte ASCII header cards grouped in 2880 byte
blocks and terminated by END, followed by big-endian data zero-padded to a
2880 byte multiple. Only the mandatory keywords are written; XISF metadata
is not carried over.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Iterable

from astropy.io import fits

from ...exceptions import ConversionIOError, FileOperation
from ...types import AxisSizes, FilePath, HeaderCards

logger = logging.getLogger(__name__)

CARD_LENGTH = 80
BLOCK_SIZE = 2880
BLANK_CARD = ' ' * CARD_LENGTH
END_CARD = 'END'.ljust(CARD_LENGTH)
VALID_BITPIX = (8, 16, 32)


@dataclass(frozen=True)
class FITSImage:
    """A converted image ready to be written as a primary HDU."""
    bitpix: int
    naxes: AxisSizes
    cards: HeaderCards
    data: bytes

    @property
    def naxis(self) -> int:
        return len(self.naxes)


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def _pad_length(length: int) -> int:
    return (-length) % BLOCK_SIZE


def _card(keyword: str, value, comment: str) -> str:
    image = fits.Card(keyword, value, comment).image
    if len(image) != CARD_LENGTH:
        raise ValueError(f"Card {keyword} is {len(image)} bytes long")
    return image


def build_header(bitpix: int, naxes: Iterable[int]) -> HeaderCards:
    """
    Build the mandatory header cards, padded with blank cards to a block boundary.

    Args:
        bitpix: FITS BITPIX value (8, 16 or 32)
        naxes: NAXIS1..NAXISn sizes

    Returns:
        tuple: 80 character cards whose total length is a multiple of 2880
    """
    if bitpix not in VALID_BITPIX:
        raise ValueError(f"Unsupported BITPIX: {bitpix}")
    naxes = tuple(naxes)

    cards = [
        _card('SIMPLE', True, 'conforms to FITS standard'),
        _card('BITPIX', bitpix, 'array data type'),
        _card('NAXIS', len(naxes), 'number of array dimensions'),
    ]
    for i, size in enumerate(naxes):
        cards.append(_card(f'NAXIS{i + 1}', size, ''))
    cards.append(END_CARD)

    cards_per_block = BLOCK_SIZE // CARD_LENGTH
    cards.extend([BLANK_CARD] * ((-len(cards)) % cards_per_block))
    return tuple(cards)


def write_data_block(buffer: bytes) -> bytes:
    """Return the big-endian data zero-padded to a multiple of 2880 bytes."""
    return bytes(buffer) + b'\x00' * _pad_length(len(buffer))


def make_fits_image(bitpix: int, naxes: Iterable[int], data: bytes) -> FITSImage:
    """
    Assemble a FITSImage and its header cards.

    Args:
        bitpix: FITS BITPIX value (8, 16 or 32)
        naxes: NAXIS1..NAXISn sizes
        data: Unpadded big-endian data

    Raises:
        ValueError: If the data length does not match the axes and BITPIX
    """
    naxes = tuple(naxes)
    cards = build_header(bitpix, naxes)
    expected = bitpix // 8
    for size in naxes:
        expected *= size
    if len(data) != expected:
        raise ValueError(f"Data has {len(data)} bytes, expected {expected} for axes {naxes}")
    return FITSImage(bitpix=bitpix, naxes=naxes, cards=cards, data=bytes(data))


def write(path: FilePath, header: Iterable[str], data: bytes, overwrite: bool = True) -> None:
    """
    Write header cards and data as a FITS file.

    The file is written to a temporary file next to the destination and
    renamed into place, so the destination either holds the complete file or
    is left untouched.

    Args:
        path: Destination FITS path
        header: Header cards as returned by build_header
        data: Unpadded big-endian data
        overwrite: Replace an existing destination if True

    Raises:
        ConversionIOError: If the destination exists and overwrite is False,
            or if any write fails
    """
    file_path = os.fspath(path)
    # Checked once up front; a file created before the rename is replaced.
    if not overwrite and os.path.exists(file_path):
        raise ConversionIOError(f"Output file already exists: {file_path}",
                                file_path=file_path, error_code="OUTPUT_EXISTS")

    header_bytes = ''.join(header).encode('ascii')
    if not header_bytes or len(header_bytes) % BLOCK_SIZE:
        raise ValueError(f"Header length {len(header_bytes)} is not a positive multiple of {BLOCK_SIZE}")
    data_bytes = write_data_block(data)

    directory = os.path.dirname(os.path.abspath(file_path))
    try:
        with FileOperation() as operation:
            fd, temp_path = tempfile.mkstemp(prefix='.xisfits-', suffix='.tmp', dir=directory)
            operation.add_temp_file(temp_path)
            with os.fdopen(fd, 'wb') as f:
                f.write(header_bytes)
                f.write(data_bytes)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates the file owner-only; apply the mode open() would give
            os.chmod(temp_path, 0o666 & ~_current_umask())
            os.replace(temp_path, file_path)
            operation.commit()
    except OSError as e:
        raise ConversionIOError(f"Error writing FITS file {file_path}: {e}",
                                file_path=file_path, error_code="WRITE_FAILED")

    logger.info(f"Wrote {len(header_bytes) + len(data_bytes)} bytes to {file_path}")


def write_fits_image(path: FilePath, fits_image: FITSImage, overwrite: bool = True) -> None:
    """Write a FITSImage with write()."""
    write(path, fits_image.cards, fits_image.data, overwrite=overwrite)
