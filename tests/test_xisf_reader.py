"""
Tests for the XISF reader - header parsing and data block reading
"""
import os

import pytest

from conftest import DATA_OFFSET, encode_inline, sample_bytes
from xisfits.exceptions import ConversionIOError, ParseError
from xisfits.file_formats.xisfFile.xisf_reader import parse_header, read_data_block
from xisfits.file_formats.xisfFile.xisf_types import XISFSampleFormat


class TestParseHeader:
    """Test parse_header."""

    def test_parses_geometry_format_and_location(self, uint16_xisf):
        """Test a well formed single channel UInt16 header."""
        image = parse_header(uint16_xisf)

        assert image.width == 2
        assert image.height == 2
        assert image.channels == 1
        assert image.sample_format is XISFSampleFormat.UINT16
        assert image.byte_order == "little"
        assert image.color_space == "Gray"
        assert image.data_block.method == "attachment"
        assert image.data_block.offset == DATA_OFFSET
        assert image.data_block.length == 8
        assert image.expected_length == 8

    def test_accepts_pathlike(self, uint16_xisf):
        """Test that pathlib paths are accepted."""
        from pathlib import Path
        assert parse_header(Path(uint16_xisf)).width == 2

    def test_multichannel_geometry(self, make_xisf):
        """Test an RGB image geometry."""
        path = make_xisf(geometry="3:2:3", sample_format="UInt8", data=bytes(range(18)))
        image = parse_header(path)

        assert (image.width, image.height, image.channels) == (3, 2, 3)
        assert image.geometry.to_fits_axes() == (3, 2, 3)

    def test_non_namespaced_header(self, make_xisf):
        """Test the fallback for headers without the XISF namespace."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16"), namespaced=False)
        assert parse_header(path).sample_format is XISFSampleFormat.UINT16

    def test_big_endian_byte_order(self, make_xisf):
        """Test that byteOrder is read."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16", "big"),
                         extra_attrs={"byteOrder": "big"})
        assert parse_header(path).byte_order == "big"

    def test_float_format_parses(self, make_xisf):
        """Test that unsupported but known formats still parse."""
        path = make_xisf(sample_format="Float32", data=sample_bytes([0.0, 0.5, 1.0, 0.25], "Float32"))
        assert parse_header(path).sample_format is XISFSampleFormat.FLOAT32

    @pytest.mark.parametrize("attribute", ["geometry", "sample_format", "location"])
    def test_missing_required_attribute(self, make_xisf, attribute):
        """Test that each required attribute fails fast when missing."""
        kwargs = {"data": sample_bytes([1, 2, 3, 4], "UInt16")}
        kwargs[attribute] = "" if attribute == "location" else None
        path = make_xisf(**kwargs)

        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "MISSING_ATTRIBUTE"
        assert exc_info.value.file_path == path

    @pytest.mark.parametrize("geometry", ["2", "2:x:1", "0:2:1", "2:2:0", "2::1"])
    def test_malformed_geometry(self, make_xisf, geometry):
        """Test malformed geometry strings."""
        path = make_xisf(geometry=geometry, data=sample_bytes([1, 2, 3, 4], "UInt16"))
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "BAD_GEOMETRY"

    def test_unknown_sample_format(self, make_xisf):
        """Test a sampleFormat that is not an XISF format at all."""
        path = make_xisf(sample_format="UInt12", data=sample_bytes([1, 2, 3, 4], "UInt16"))
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "BAD_SAMPLE_FORMAT"

    @pytest.mark.parametrize("location", [
        "attachment:4096",
        "attachment:abc:8",
        "attachment:4096:0",
        "attachment:8:8",
        "embedded",
        "inline:uuencode",
        "somewhere:1:2",
    ])
    def test_malformed_or_unsupported_location(self, make_xisf, location):
        """Test location attributes that cannot be resolved."""
        path = make_xisf(location=location, data=b"")
        with pytest.raises(ParseError):
            parse_header(path)

    def test_length_mismatch(self, make_xisf):
        """Test a block length that disagrees with the geometry."""
        path = make_xisf(geometry="3:3:1", data=sample_bytes([1, 2, 3, 4], "UInt16"))
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "LENGTH_MISMATCH"

    def test_compressed_block_rejected(self, make_xisf):
        """Test that compressed data blocks are refused."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16"),
                         extra_attrs={"compression": "zlib:8"})
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "COMPRESSED_BLOCK"

    def test_checksum_ignored(self, make_xisf):
        """Test that a checksum attribute does not prevent parsing."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16"),
                         extra_attrs={"checksum": "sha1:0123456789abcdef"})
        assert parse_header(path).width == 2

    def test_invalid_byte_order(self, make_xisf):
        """Test an unknown byteOrder value."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16"),
                         extra_attrs={"byteOrder": "middle"})
        with pytest.raises(ParseError):
            parse_header(path)

    def test_bad_signature(self, make_xisf):
        """Test a file that is not monolithic XISF."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16"), signature=b"XISB0100")
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "BAD_SIGNATURE"

    def test_short_file(self, temp_dir):
        """Test a file shorter than the preamble."""
        path = os.path.join(temp_dir, "short.xisf")
        with open(path, "wb") as f:
            f.write(b"XISF01")
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "SHORT_PREAMBLE"

    def test_truncated_xml(self, make_xisf):
        """Test an XML header cut short."""
        path = make_xisf(location="inline:base64", data=b"",
                         image_text=encode_inline(sample_bytes([1, 2, 3, 4], "UInt16")),
                         truncate=20)
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "SHORT_HEADER"

    def test_invalid_xml(self, temp_dir):
        """Test a header that is not XML."""
        import struct
        body = b"<xisf><Image geometry="
        path = os.path.join(temp_dir, "bad.xisf")
        with open(path, "wb") as f:
            f.write(b"XISF0100" + struct.pack("<II", len(body), 0) + body)
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "BAD_XML"

    def test_no_image_element(self, temp_dir):
        """Test a header without an Image element."""
        import struct
        body = b'<xisf version="1.0" xmlns="http://www.pixinsight.com/xisf"><Metadata/></xisf>'
        path = os.path.join(temp_dir, "empty.xisf")
        with open(path, "wb") as f:
            f.write(b"XISF0100" + struct.pack("<II", len(body), 0) + body)
        with pytest.raises(ParseError) as exc_info:
            parse_header(path)
        assert exc_info.value.error_code == "NO_IMAGE"

    def test_missing_file(self, temp_dir):
        """Test that an unreadable file is an I/O error."""
        with pytest.raises(ConversionIOError):
            parse_header(os.path.join(temp_dir, "missing.xisf"))


class TestReadDataBlock:
    """Test read_data_block."""

    def test_reads_exact_attachment(self, uint16_xisf):
        """Test reading the attached block."""
        image = parse_header(uint16_xisf)
        data = read_data_block(image, uint16_xisf)
        assert data == sample_bytes([0, 32767, 32768, 65535], "UInt16")

    def test_short_attachment(self, make_xisf):
        """Test a file that ends before the declared block does."""
        path = make_xisf(data=sample_bytes([1, 2, 3, 4], "UInt16"), truncate=3)
        image = parse_header(path)
        with pytest.raises(ConversionIOError) as exc_info:
            read_data_block(image, path)
        assert exc_info.value.error_code == "SHORT_DATA_BLOCK"

    def test_file_removed_after_parse(self, uint16_xisf):
        """Test that a vanished file is an I/O error."""
        image = parse_header(uint16_xisf)
        os.remove(uint16_xisf)
        with pytest.raises(ConversionIOError):
            read_data_block(image, uint16_xisf)

    @pytest.mark.parametrize("encoding", ["base64", "hex"])
    def test_inline_block(self, make_xisf, encoding):
        """Test inline base64 and hex data blocks."""
        raw = sample_bytes([5, 6, 7, 8], "UInt16")
        path = make_xisf(location=f"inline:{encoding}", data=b"",
                         image_text=encode_inline(raw, encoding))
        image = parse_header(path)
        assert image.data_block.method == "inline"
        assert read_data_block(image, path) == raw

    def test_inline_block_wrong_size(self, make_xisf):
        """Test inline data whose size disagrees with the geometry."""
        path = make_xisf(location="inline:base64", data=b"",
                         image_text=encode_inline(b"\x01\x02"))
        image = parse_header(path)
        with pytest.raises(ParseError) as exc_info:
            read_data_block(image, path)
        assert exc_info.value.error_code == "LENGTH_MISMATCH"

    def test_inline_block_undecodable(self, make_xisf):
        """Test inline text that is not valid base64."""
        path = make_xisf(location="inline:base64", data=b"", image_text="@@@@")
        image = parse_header(path)
        with pytest.raises(ParseError) as exc_info:
            read_data_block(image, path)
        assert exc_info.value.error_code == "BAD_INLINE_DATA"
