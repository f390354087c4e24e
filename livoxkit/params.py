"""Consistency checks applied to parsed lidar configurations before use."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from livoxkit.config import DeviceType, LidarConfig

log = logging.getLogger(__name__)

# Ports a Mid-360 always listens on; any other configured value is replaced.
MID360_LIDAR_PORTS = {
    "cmd_data_port": 56100,
    "push_msg_port": 56200,
    "point_data_port": 56300,
    "imu_data_port": 56400,
    "log_data_port": 56500,
}

_MULTICAST_LOW = 0xE0000000
_MULTICAST_HIGH = 0xEFFFFFFF


class ParamsError(ValueError):
    """Raised when a set of lidar configurations is inconsistent."""


def ip_to_bytes(ip: str) -> bytes:
    """Turn a dotted IPv4 address into its four bytes, most significant first."""
    parts = ip.split(".")
    if len(parts) != 4:
        raise ParamsError(f"not an IPv4 address: {ip!r}")
    values = []
    for part in parts:
        if not (part.isascii() and part.isdigit()):
            raise ParamsError(f"not an IPv4 address: {ip!r}")
        value = int(part)
        if value > 255:
            raise ParamsError(f"not an IPv4 address: {ip!r}")
        values.append(value)
    return bytes(values)


def enforce_mid360_ports(config: LidarConfig) -> list[str]:
    """Reset the lidar ports of a Mid-360 configuration to the fixed ones.

    Returns the names of the ports that had to be corrected.
    """
    if config.device_type != DeviceType.MID360:
        return []
    net = config.lidar_net_info
    corrected = []
    for name, required in MID360_LIDAR_PORTS.items():
        if getattr(net, name) != required:
            log.error("Mid360 lidar %s must be %d", name, required)
            setattr(net, name, required)
            corrected.append(name)
    return corrected


def _check_lidar_ips(
    lidars: list[LidarConfig], custom_lidars: list[LidarConfig]
) -> None:
    seen: set[str] = set()
    for config in lidars:
        ip = config.lidar_net_info.lidar_ipaddr
        if not ip:
            continue
        if ip in seen:
            raise ParamsError(f"lidar ip conflict: {ip}")
        seen.add(ip)
    for config in custom_lidars:
        ip = config.lidar_net_info.lidar_ipaddr
        if not ip:
            raise ParamsError("custom lidar ip address is empty")
        if ip in seen:
            raise ParamsError(f"lidar ip conflict: {ip}")
        seen.add(ip)


def _check_multicast(config: LidarConfig, label: str) -> None:
    multicast_ip = config.host_net_info.multicast_ip
    if not multicast_ip:
        log.info("%s: point cloud and IMU data unicast is enabled", label)
        return
    net_ip = int.from_bytes(ip_to_bytes(multicast_ip), "big")
    if net_ip <= _MULTICAST_LOW or net_ip > _MULTICAST_HIGH:
        raise ParamsError(f"lidar multicast ip error: {multicast_ip}")
    log.info("%s: point cloud and IMU data multicast ip %s", label, multicast_ip)


def check_params(
    lidars: Optional[Iterable[LidarConfig]],
    custom_lidars: Optional[Iterable[LidarConfig]],
) -> None:
    """Validate lidar configurations, fixing Mid-360 ports in place.

    Raises ParamsError when nothing is configured, when lidar addresses
    clash or are missing, or when a multicast address is out of range.
    """
    if lidars is None and custom_lidars is None:
        raise ParamsError("no lidar configuration given")
    lidars = list(lidars or [])
    custom_lidars = list(custom_lidars or [])
    if not lidars and not custom_lidars:
        raise ParamsError("all lidar configurations are empty")

    _check_lidar_ips(lidars, custom_lidars)

    for config in (*lidars, *custom_lidars):
        enforce_mid360_ports(config)

    for config in lidars:
        _check_multicast(config, f"device type {int(config.device_type)}")
    for config in custom_lidars:
        _check_multicast(config, f"lidar ip {config.lidar_net_info.lidar_ipaddr}")