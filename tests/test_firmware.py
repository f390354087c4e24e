import pytest

from livoxkit.firmware import (
    ENL_FILE_VERSION_V3,
    HEADER_SIZE,
    MIN_FILE_SIZE,
    TAIL_SIZE,
    Firmware,
    FirmwareDeviceType,
    FirmwareError,
    FirmwareHeader,
    crc16_mcrf4xx,
)


def _header(length, **overrides):
    header = FirmwareHeader(
        file_version=ENL_FILE_VERSION_V3,
        firmware_version=0x01020304,
        firmware_length=length,
        firmware_type=1,
        device_type=int(FirmwareDeviceType.LIDAR_HAP),
        encrypt_type=2,
        checksum_type=1,
        checksum_length=4,
        checksum=b"\xaa\xbb\xcc\xdd",
        hw_whitelist=b"\x01\x02",
        modify_time=1700000000,
        **overrides,
    )
    header.header_checksum = header.computed_checksum()
    return header


def _package(body, tail=b"S" * TAIL_SIZE):
    header = _header(len(body))
    return header, header.pack() + body + tail


def test_crc_check_value():
    assert crc16_mcrf4xx(b"123456789") == 0x6F91


def test_crc_of_nothing_is_initial_value():
    assert crc16_mcrf4xx(b"") == 0xFFFF


def test_header_size_matches_layout():
    assert HEADER_SIZE == 286
    assert len(FirmwareHeader().pack()) == HEADER_SIZE


def test_header_round_trip_pads_fields():
    header = _header(10)
    decoded = FirmwareHeader.unpack(header.pack())
    assert decoded.firmware_length == 10
    assert decoded.checksum[:4] == b"\xaa\xbb\xcc\xdd"
    assert len(decoded.checksum) == 128
    assert decoded.hw_whitelist.rstrip(b"\x00") == b"\x01\x02"
    assert decoded.header_checksum == header.header_checksum


def test_unpack_short_data_raises():
    with pytest.raises(FirmwareError):
        FirmwareHeader.unpack(b"\x00" * (HEADER_SIZE - 1))


def test_pack_rejects_long_checksum():
    with pytest.raises(FirmwareError):
        FirmwareHeader(checksum=b"x" * 129).pack()


def test_parse_valid_package():
    body = bytes(range(50))
    header, data = _package(body)
    firmware = Firmware.parse(data)
    assert firmware.header == FirmwareHeader.unpack(header.pack())
    assert firmware.data == body
    assert firmware.tail == b"S" * TAIL_SIZE
    assert firmware.file_size == len(data)
    assert firmware.package_version == ENL_FILE_VERSION_V3
    assert firmware.complete


def test_parse_too_small_raises():
    with pytest.raises(FirmwareError):
        Firmware.parse(b"\x00" * (MIN_FILE_SIZE - 1))


def test_parse_bad_header_checksum_raises():
    _, data = _package(b"x" * 20)
    corrupted = bytearray(data)
    corrupted[0] ^= 0xFF
    with pytest.raises(FirmwareError):
        Firmware.parse(bytes(corrupted))


def test_parse_truncated_body_is_kept_incomplete():
    header = _header(100)
    data = header.pack() + b"z" * 50
    firmware = Firmware.parse(data)
    assert firmware.data == b"z" * 50
    assert firmware.tail == b""
    assert not firmware.complete


def test_load_from_file(tmp_path):
    body = b"firmware-image" * 3
    _, data = _package(body)
    path = tmp_path / "image.bin"
    path.write_bytes(data)
    firmware = Firmware.load(path)
    assert firmware.data == body
    assert firmware.file_size == len(data)


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FirmwareError):
        Firmware.load(tmp_path / "absent.bin")