"""
XISF to FITS Converter

This module provides the XISFConverter class, which runs one conversion
through a fixed sequence of phases:

    START -> HEADER_PARSED -> DATA_READ -> CONVERTED -> WRITTEN -> DONE

A failure in any phase moves the converter to FAILED and the error is
re-raised with the name of the phase that failed. Phases are never retried
and a converter runs at most once. Nothing is written before the CONVERTED
phase completes, so a failed conversion never leaves a complete output file.
"""

import logging
import os
from enum import Enum
from typing import Optional

from ...config import XisfitsConfig
from ...exceptions import XisfitsError
from ...types import FilePath
from ..fitsFile.fits_writer import FITSImage, make_fits_image, write_fits_image
from .data_conversion import convert, log_data_statistics, resolve_bitpix
from .xisf_reader import parse_header, read_data_block
from .xisf_types import XISFImage

logger = logging.getLogger(__name__)


class ConversionPhase(Enum):
    """States of a single conversion."""
    START = "start"
    HEADER_PARSED = "header parsed"
    DATA_READ = "data read"
    CONVERTED = "converted"
    WRITTEN = "written"
    DONE = "done"
    FAILED = "failed"


# Name of the work done when leaving each state, used in error messages
_PHASE_ACTIONS = {
    ConversionPhase.START: "parse header",
    ConversionPhase.HEADER_PARSED: "read data",
    ConversionPhase.DATA_READ: "convert",
    ConversionPhase.CONVERTED: "write",
}


def build_fits_image(image: XISFImage, data: bytes) -> FITSImage:
    """Assemble the FITS image for data converted from image."""
    return make_fits_image(resolve_bitpix(image.sample_format), image.geometry.to_fits_axes(), data)


class XISFConverter:
    """
    Convert one XISF file to FITS format.

    Usage:
        converter = XISFConverter("image.xisf")
        converter.convert_to_fits("image.fits")
    """

    def __init__(self, file_path: FilePath, config: Optional[XisfitsConfig] = None):
        """
        Initialize the converter with an input path.

        Args:
            file_path: Path to the XISF file to convert
            config: Conversion settings; defaults are used if None
        """
        self.file_path = os.fspath(file_path)
        self.config = config or XisfitsConfig()
        self.phase = ConversionPhase.START
        self.image: Optional[XISFImage] = None
        self.fits_image: Optional[FITSImage] = None

        if not self.file_path.lower().endswith('.xisf'):
            logger.warning(f"File {self.file_path} does not have .xisf extension")

    def _advance(self, phase: ConversionPhase):
        logger.debug(f"Conversion phase: {self.phase.value} -> {phase.value}")
        self.phase = phase

    def convert_to_fits(self, output_path: Optional[FilePath] = None) -> str:
        """
        Convert the XISF file to FITS format.

        Args:
            output_path: Output FITS file path. If None, uses the input name with a .fits extension.

        Returns:
            str: Path to the created FITS file

        Raises:
            ParseError, UnsupportedTypeError, ConversionIOError: From the failing phase,
                with error.phase set to that phase's name
            XisfitsError: If this converter has already run
        """
        if self.phase is not ConversionPhase.START:
            raise XisfitsError(f"Converter for {self.file_path} already ran (state: {self.phase.value})",
                               error_code="ALREADY_RUN")

        if output_path is None:
            output_path = f"{os.path.splitext(self.file_path)[0]}.fits"
        output_path = os.fspath(output_path)

        try:
            self.image = parse_header(self.file_path)
            self._advance(ConversionPhase.HEADER_PARSED)

            raw = read_data_block(self.image, self.file_path)
            self._advance(ConversionPhase.DATA_READ)

            log_data_statistics(raw, self.image.sample_format, self.image.byte_order,
                                warn_on_clip=self.config.conversion.warn_on_clip)
            converted = convert(raw, self.image.sample_format, self.image.byte_order)
            self.fits_image = build_fits_image(self.image, converted)
            self._advance(ConversionPhase.CONVERTED)

            write_fits_image(output_path, self.fits_image, overwrite=self.config.conversion.overwrite)
            self._advance(ConversionPhase.WRITTEN)
        except XisfitsError as e:
            if e.phase is None:
                e.phase = _PHASE_ACTIONS[self.phase]
            self.phase = ConversionPhase.FAILED
            logger.error(f"Conversion of {self.file_path} failed during {e.phase}: {e}")
            raise
        except Exception:
            self.phase = ConversionPhase.FAILED
            raise

        self._advance(ConversionPhase.DONE)
        logger.info(f"Successfully created FITS file: {output_path} "
                    f"(BITPIX={self.fits_image.bitpix}, NAXIS={list(self.fits_image.naxes)})")
        return output_path


def convert_file(input_path: FilePath, output_path: FilePath,
                 config: Optional[XisfitsConfig] = None) -> str:
    """Convert input_path to output_path with a fresh XISFConverter."""
    return XISFConverter(input_path, config).convert_to_fits(output_path)
