"""
Test utilities for xisfits.

Provides fixtures that build small XISF files on disk and helpers to check
the FITS files written by the converter.
"""

import base64
import logging
import os
import shutil
import struct
import tempfile
from typing import Dict, Generator, Optional

import numpy as np
import pytest

XISF_NAMESPACE = "http://www.pixinsight.com/xisf"
DATA_OFFSET = 4096

_NUMPY_DTYPES = {
    "UInt8": "u1",
    "UInt16": "u2",
    "UInt32": "u4",
    "UInt64": "u8",
    "Int16": "i2",
    "Int32": "i4",
    "Float32": "f4",
    "Float64": "f8",
}


def sample_bytes(values, sample_format: str, byte_order: str = "little") -> bytes:
    """Encode values as raw XISF samples."""
    order = "<" if byte_order == "little" else ">"
    return np.asarray(values, dtype=f"{order}{_NUMPY_DTYPES[sample_format]}").tobytes()


def encode_inline(data: bytes, encoding: str = "base64") -> str:
    """Encode data as the text of an inline XISF data block."""
    if encoding == "hex":
        return base64.b16encode(data).decode("ascii").lower()
    return base64.b64encode(data).decode("ascii")


def build_xisf(
    data: bytes,
    geometry: Optional[str] = "2:2:1",
    sample_format: Optional[str] = "UInt16",
    location: Optional[str] = None,
    extra_attrs: Optional[Dict[str, str]] = None,
    image_text: str = "",
    namespaced: bool = True,
    signature: bytes = b"XISF0100",
) -> bytes:
    """
    Build the bytes of a monolithic XISF file with one Image element.

    Passing None for geometry or sample_format, or "" for location, omits the
    attribute. location defaults to an attachment at DATA_OFFSET holding data.
    """
    attrs = {}
    if geometry is not None:
        attrs["geometry"] = geometry
    if sample_format is not None:
        attrs["sampleFormat"] = sample_format
    attrs["colorSpace"] = "Gray"
    attrs.update(extra_attrs or {})

    attached = location is None
    if attached:
        location = f"attachment:{DATA_OFFSET}:{len(data)}"
    if location != "":
        attrs["location"] = location

    attr_text = " ".join(f'{k}="{v}"' for k, v in attrs.items())
    xmlns = f' xmlns="{XISF_NAMESPACE}"' if namespaced else ""
    xml = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<xisf version="1.0"{xmlns}>'
        f'<Image {attr_text}>{image_text}'
        '<FITSKeyword name="OBJECT" value="\'M31\'" comment="Object name"/>'
        '</Image>'
        '<Metadata><Property id="XISF:CreatorApplication" type="String">xisfits tests</Property></Metadata>'
        '</xisf>'
    ).encode("utf-8")

    preamble = signature + struct.pack("<II", len(xml), 0)
    content = preamble + xml
    if attached:
        assert len(content) <= DATA_OFFSET
        content += b"\x00" * (DATA_OFFSET - len(content)) + data
    return content


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Provide a temporary working directory."""
    path = tempfile.mkdtemp()
    try:
        yield path
    finally:
        shutil.rmtree(path)


@pytest.fixture
def make_xisf(temp_dir):
    """Factory writing an XISF file into temp_dir and returning its path."""

    def _make(name: str = "image.xisf", truncate: int = 0, **kwargs) -> str:
        content = build_xisf(**kwargs)
        if truncate:
            content = content[:-truncate]
        path = os.path.join(temp_dir, name)
        with open(path, "wb") as f:
            f.write(content)
        return path

    return _make


@pytest.fixture
def uint16_xisf(make_xisf) -> str:
    """2x2 single channel UInt16 image with values 0, 32767, 32768, 65535."""
    return make_xisf(data=sample_bytes([0, 32767, 32768, 65535], "UInt16"))


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by the CLI so tests do not share them."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler).__module__ == "logging":
            root.removeHandler(handler)
            handler.close()
    root.setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep XISFITS_* variables from the outer environment out of the tests."""
    for key in list(os.environ):
        if key.startswith("XISFITS_"):
            monkeypatch.delenv(key, raising=False)


# Custom assertion helpers
def assert_file_exists(file_path: str):
    """Assert that a file exists."""
    assert os.path.exists(file_path), f"File does not exist: {file_path}"


def assert_valid_fits_file(file_path: str):
    """Assert that a file is a FITS file astropy can open."""
    from astropy.io import fits

    assert_file_exists(file_path)
    size = os.path.getsize(file_path)
    assert size > 0 and size % 2880 == 0, f"FITS size {size} is not a multiple of 2880"

    try:
        with fits.open(file_path) as hdul:
            assert len(hdul) == 1, "FITS file must have exactly one HDU"
            assert hdul[0].header is not None, "Primary HDU has no header"
    except Exception as e:
        pytest.fail(f"Invalid FITS file {file_path}: {e}")
