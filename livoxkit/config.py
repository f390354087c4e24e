"""Parsing of the JSON configuration file that describes lidars and host networking."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from os import PathLike
from typing import Any, Union

log = logging.getLogger(__name__)

_UINT32_MAX = 0xFFFFFFFF

_PORT_KEYS = (
    "cmd_data_port",
    "push_msg_port",
    "point_data_port",
    "imu_data_port",
    "log_data_port",
)


class ConfigError(ValueError):
    """Raised when a configuration document is missing data or holds wrong types."""


class DeviceType(IntEnum):
    """Lidar device types."""

    HUB = 0
    MID40 = 1
    TELE = 2
    HORIZON = 3
    MID70 = 6
    AVIA = 7
    MID360 = 9
    INDUSTRIAL_HAP = 10
    HAP = 15
    PA = 16


# Section names in the configuration document and the device type each one configures.
SECTION_DEVICE_TYPES = {
    "HAP": DeviceType.INDUSTRIAL_HAP,
    "MID360": DeviceType.MID360,
}


@dataclass
class LidarNetInfo:
    """Ports the lidar uses, and its address when one is configured."""

    lidar_ipaddr: str = ""
    cmd_data_port: int = 0
    push_msg_port: int = 0
    point_data_port: int = 0
    imu_data_port: int = 0
    log_data_port: int = 0


@dataclass
class HostNetInfo:
    """Address and ports on the host side."""

    host_ip: str = ""
    multicast_ip: str = ""
    cmd_data_port: int = 0
    push_msg_port: int = 0
    point_data_port: int = 0
    imu_data_port: int = 0
    log_data_port: int = 0


@dataclass
class LidarConfig:
    """Configuration of one lidar, or of every lidar of a type."""

    device_type: DeviceType
    lidar_net_info: LidarNetInfo = field(default_factory=LidarNetInfo)
    host_net_info: HostNetInfo = field(default_factory=HostNetInfo)


@dataclass
class LoggerConfig:
    """Settings of the on-disk lidar log."""

    enable: bool = False
    cache_size_mb: int = 0
    path: str = "./"


@dataclass
class FrameworkConfig:
    """Settings of the SDK as a whole."""

    master_sdk: bool = True


@dataclass
class SdkConfig:
    """Everything a configuration document describes."""

    lidars: list[LidarConfig] = field(default_factory=list)
    custom_lidars: list[LidarConfig] = field(default_factory=list)
    logger: LoggerConfig = field(default_factory=LoggerConfig)
    framework: FrameworkConfig = field(default_factory=FrameworkConfig)


def _is_uint(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= _UINT32_MAX
    )


def _require_object(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise ConfigError(f"{what} is not an object")
    return value


def _read_port(obj: dict, key: str, what: str) -> int:
    value = obj.get(key)
    if not _is_uint(value):
        raise ConfigError(f"{what} has no {key} member or {key} is not uint")
    return value


def _parse_lidar_net_info(section: dict, ipaddr: str = "") -> LidarNetInfo:
    net = section.get("lidar_net_info")
    if not isinstance(net, dict):
        raise ConfigError(
            "lidar net info missing: no lidar_net_info member or it is not an object"
        )
    ports = {key: _read_port(net, key, "lidar_net_info") for key in _PORT_KEYS}
    return LidarNetInfo(lidar_ipaddr=ipaddr, **ports)


def _parse_host_net_info(host: Any) -> HostNetInfo:
    host = _require_object(host, "host_net_info entry")
    if "host_ip" not in host and "cmd_data_ip" not in host:
        raise ConfigError("host net info has neither host_ip nor cmd_data_ip")
    if "host_ip" in host and not isinstance(host["host_ip"], str):
        raise ConfigError("host_ip is not a string")
    if "cmd_data_ip" in host and not isinstance(host["cmd_data_ip"], str):
        raise ConfigError("cmd_data_ip is not a string")

    # host_ip takes precedence over cmd_data_ip when both are given.
    host_ip = host.get("host_ip", host.get("cmd_data_ip", ""))

    multicast_ip = host.get("multicast_ip", "")
    if not isinstance(multicast_ip, str):
        raise ConfigError("multicast_ip is not a string")

    ports = {key: _read_port(host, key, "host_net_info") for key in _PORT_KEYS}
    return HostNetInfo(host_ip=host_ip, multicast_ip=multicast_ip, **ports)


def _parse_typed(
    section: dict, host: Any, device_type: DeviceType, ipaddr: str = ""
) -> LidarConfig:
    return LidarConfig(
        device_type=device_type,
        lidar_net_info=_parse_lidar_net_info(section, ipaddr),
        host_net_info=_parse_host_net_info(host),
    )


def _parse_section(section: dict, device_type: DeviceType, config: SdkConfig) -> None:
    hosts = section.get("host_net_info")
    if isinstance(hosts, list):
        for host in hosts:
            host = _require_object(host, "host_net_info entry")
            ips = host.get("lidar_ip")
            if not isinstance(ips, list):
                config.lidars.append(_parse_typed(section, host, device_type))
                continue
            for ip in ips:
                if not isinstance(ip, str):
                    raise ConfigError("lidar_ip entry is not a string")
                config.custom_lidars.append(
                    _parse_typed(section, host, device_type, ip)
                )
    elif isinstance(hosts, dict):
        config.lidars.append(_parse_typed(section, hosts, device_type))
    else:
        raise ConfigError(
            "lidar net info missing: no host_net_info member or it is neither object nor array"
        )


def _parse_framework(doc: dict) -> FrameworkConfig:
    if "master_sdk" not in doc:
        log.info("master/slave sdk set to master by default")
        return FrameworkConfig(master_sdk=True)
    master = doc["master_sdk"]
    if not isinstance(master, bool):
        raise ConfigError("master_sdk is not a bool")
    log.info("master/slave sdk set to %s", "master" if master else "slave")
    return FrameworkConfig(master_sdk=master)


def _parse_logger(doc: dict) -> LoggerConfig:
    if "lidar_log_enable" not in doc:
        path = doc.get("lidar_log_path")
        logger = LoggerConfig(
            enable=False,
            cache_size_mb=0,
            path=path if isinstance(path, str) else "./",
        )
        log.info("lidar logger disabled")
        return logger

    enable = doc["lidar_log_enable"]
    if not isinstance(enable, bool):
        raise ConfigError("lidar_log_enable is not a bool")
    cache = doc.get("lidar_log_cache_size_MB")
    if not _is_uint(cache):
        raise ConfigError("lidar_log_cache_size_MB is missing or not uint")
    path = doc.get("lidar_log_path")
    if not isinstance(path, str):
        raise ConfigError("lidar_log_path is missing or not a string")
    log.info(
        "lidar log config: enable=%s cache_size_MB=%s path=%s", enable, cache, path
    )
    return LoggerConfig(enable=enable, cache_size_mb=cache, path=path)


def parse_config_text(text: Union[str, bytes]) -> SdkConfig:
    """Parse a configuration document held in memory."""
    try:
        doc = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigError(f"configuration is not valid JSON: {exc}") from exc
    doc = _require_object(doc, "configuration document")

    config = SdkConfig(framework=_parse_framework(doc), logger=_parse_logger(doc))
    for name, device_type in SECTION_DEVICE_TYPES.items():
        section = doc.get(name)
        if isinstance(section, dict):
            _parse_section(section, device_type, config)
    return config


def parse_config(path: Union[str, "PathLike[str]"]) -> SdkConfig:
    """Read and parse a configuration file."""
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise ConfigError(f"cannot open configuration file {path}: {exc}") from exc
    return parse_config_text(data)