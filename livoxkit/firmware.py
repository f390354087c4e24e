"""Reading and checking of encrypted lidar firmware packages."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from os import PathLike
from typing import Union

log = logging.getLogger(__name__)

MD5_SIGNATURE_LENGTH = 16
ENL_FILE_VERSION_V2 = 0x02000000
ENL_FILE_VERSION_V3 = 0x03000000

GENERAL_TRY_COUNT_LIMIT = 10
GET_PROCESS_TRY_COUNT_LIMIT = 30
GET_PROGRESS_TRY_COUNT_LIMIT = 10

CHECKSUM_FIELD_LENGTH = 128
WHITELIST_FIELD_LENGTH = 128

_HEADER_STRUCT = struct.Struct("<IIIBBB2sBH128s128sQH")
HEADER_SIZE = _HEADER_STRUCT.size
TAIL_SIZE = MD5_SIGNATURE_LENGTH
MIN_FILE_SIZE = HEADER_SIZE + TAIL_SIZE + 1


class FirmwareError(ValueError):
    """Raised when a firmware package cannot be read or fails its checks."""


class FirmwareType(IntEnum):
    """Kinds of firmware image."""

    MULTI_APP = 0
    APP = 1
    LOADER = 2
    UNKNOWN = 3


class FirmwareDeviceType(IntEnum):
    """Device types a firmware image can target."""

    HUB = 0
    LIDAR_MID40 = 1
    LIDAR_TELE = 2
    LIDAR_HORIZON = 3
    LIDAR_HUB_V2 = 4
    LIDAR_MID_LITE = 5
    LIDAR_MID70 = 6
    LIDAR_AVIA = 7
    LIDAR_XXX1 = 8
    LIDAR_XXX2 = 9
    LIDAR_HAP = 10
    UNKNOWN = 11


def crc16_mcrf4xx(data: bytes) -> int:
    """CRC-16/MCRF4XX: reflected polynomial 0x1021, initial value 0xFFFF."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ 0x8408
            else:
                crc >>= 1
    return crc


@dataclass
class FirmwareHeader:
    """Fixed-size header at the start of a firmware package."""

    file_version: int = 0
    firmware_version: int = 0
    firmware_length: int = 0
    firmware_type: int = 0
    device_type: int = 0
    encrypt_type: int = 0
    reserved: bytes = b"\x00\x00"
    checksum_type: int = 0
    checksum_length: int = 0
    checksum: bytes = b""
    hw_whitelist: bytes = b""
    modify_time: int = 0
    header_checksum: int = 0

    def pack(self) -> bytes:
        """Encode the header in its little-endian wire layout."""
        if len(self.checksum) > CHECKSUM_FIELD_LENGTH:
            raise FirmwareError("checksum field is longer than 128 bytes")
        if len(self.hw_whitelist) > WHITELIST_FIELD_LENGTH:
            raise FirmwareError("hardware whitelist is longer than 128 bytes")
        if len(self.reserved) > 2:
            raise FirmwareError("reserved field is longer than 2 bytes")
        try:
            return _HEADER_STRUCT.pack(
                self.file_version,
                self.firmware_version,
                self.firmware_length,
                self.firmware_type,
                self.device_type,
                self.encrypt_type,
                self.reserved,
                self.checksum_type,
                self.checksum_length,
                self.checksum,
                self.hw_whitelist,
                self.modify_time,
                self.header_checksum,
            )
        except struct.error as exc:
            raise FirmwareError(f"header field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "FirmwareHeader":
        """Decode a header from the first bytes of ``data``."""
        if len(data) < HEADER_SIZE:
            raise FirmwareError(
                f"header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        fields = _HEADER_STRUCT.unpack_from(data)
        return cls(*fields)

    def computed_checksum(self) -> int:
        """CRC of the header bytes that precede the stored checksum."""
        return crc16_mcrf4xx(self.pack()[:-2])


@dataclass
class Firmware:
    """A firmware package: header, raw image and trailing signature."""

    header: FirmwareHeader
    data: bytes = b""
    tail: bytes = b""
    file_size: int = 0
    raw_header: bytes = field(default=b"", repr=False)

    @property
    def package_version(self) -> int:
        return self.header.file_version

    @property
    def complete(self) -> bool:
        """True when the image and signature were read in full."""
        return (
            len(self.data) == self.header.firmware_length
            and len(self.tail) == TAIL_SIZE
        )

    @classmethod
    def parse(cls, data: bytes) -> "Firmware":
        """Check and split a firmware package held in memory."""
        file_size = len(data)
        if file_size < MIN_FILE_SIZE:
            raise FirmwareError("firmware file size is too small")
        raw_header = bytes(data[:HEADER_SIZE])
        header = FirmwareHeader.unpack(raw_header)
        log.info("this firmware is used for device[%d]", header.device_type)

        crc = crc16_mcrf4xx(raw_header[:-2])
        if crc != header.header_checksum:
            raise FirmwareError(
                f"header checksum [{crc:04x} {header.header_checksum:04x}] error"
            )

        log.info("firmware raw data size: %d", header.firmware_length)
        body_end = HEADER_SIZE + header.firmware_length
        body = bytes(data[HEADER_SIZE:body_end])
        tail = bytes(data[body_end:body_end + TAIL_SIZE])
        firmware = cls(
            header=header,
            data=body,
            tail=tail,
            file_size=file_size,
            raw_header=raw_header,
        )
        if firmware.complete:
            log.info("all firmware data have been read successfully")
        else:
            log.warning(
                "read firmware fail [%d]", len(body) + len(tail)
            )
        return firmware

    @classmethod
    def load(cls, path: Union[str, "PathLike[str]"]) -> "Firmware":
        """Read and check a firmware package from a file."""
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise FirmwareError(f"open {path} firmware file fail: {exc}") from exc
        return cls.parse(data)