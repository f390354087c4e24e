# livoxkit

Pure-Python helpers for the files that surround a Livox LiDAR setup. They
cover SDK configuration documents, firmware packages, and the log files a
lidar pushes to the host. The package has no dependencies outside the
standard library.

## Modules

### `livoxkit.config`

This module reads the SDK's JSON configuration.

- `parse_config(path)` reads a file. `parse_config_text(text)` takes a `str`
  or `bytes` document.
- Both return an `SdkConfig` with these fields:
  - `lidars`: `LidarConfig` entries without a lidar address.
  - `custom_lidars`: one entry per address listed under `lidar_ip`.
  - `logger`: a `LoggerConfig`.
  - `framework`: a `FrameworkConfig`.
- The `HAP` and `MID360` sections are read. `HAP` maps to
  `DeviceType.INDUSTRIAL_HAP` and `MID360` to `DeviceType.MID360`.
- `host_net_info` may be a single object or an array of objects.
- `host_ip` takes precedence over `cmd_data_ip`.
- Missing members or wrong types raise `ConfigError`, which is a
  `ValueError`. So does an unreadable file or invalid JSON.

### `livoxkit.params`

This module checks parsed configurations.

- `check_params(lidars, custom_lidars)` raises `ParamsError` in these cases:
  - nothing is configured;
  - two lidars share an IP address;
  - a custom lidar has no address;
  - a multicast address lies outside 224.0.0.1 to 239.255.255.255.
- Along the way, `check_params` resets Mid-360 lidar ports in place to
  56100, 56200, 56300, 56400 and 56500.
- `enforce_mid360_ports(config)` does only the port reset. It returns the
  names of the ports it corrected.
- `ip_to_bytes(ip)` turns a dotted IPv4 address into four bytes.

### `livoxkit.firmware`

This module reads firmware packages: a 293-byte header, the image, and a
16-byte signature.

- `Firmware.load(path)` and `Firmware.parse(data)` check the size and the
  header CRC (`crc16_mcrf4xx`). They raise `FirmwareError` on failure.
- `Firmware.complete` tells whether the image and the signature were
  present in full.
- `FirmwareHeader.pack()` and `FirmwareHeader.unpack(data)` convert the
  header to and from its little-endian layout.
- `FirmwareHeader.computed_checksum()` returns the CRC the header should
  carry.

### `livoxkit.log_writer`

`LogFileWriter(log_root, serial_num)` takes `LogChunk` objects through
`store()`. A chunk's `flag` is one of `Flag.CREATE_FILE`,
`Flag.TRANSFER_DATA` or `Flag.END_FILE`.

On `flush()` the writer processes the queue:

- Each chunk is written into a hidden file named
  `type_<n>/.<YYYY-mm-dd_HH-MM-SS>_<serial>_<n>_<file_index>.dat`.
- A file is renamed to drop the leading dot when it ends, or when a new
  file of the same type is created.

The writer also has a background mode:

- `start()` runs `flush()` every 0.1 s on a background thread.
- `close()` stops that thread and closes any open files.
- The writer can be used as a context manager.
- `format_timestamp(when)` gives the timestamp used in file names.

### `livoxkit.retention`

This module keeps the log store within a size budget.

- `compute_cache_limits(cache_size_mb)` returns a `CacheLimits`, or `None`
  when the size disables logging (0, or more than 1,000,000,000 MB). The
  total is split 3:1 between real-time and exception logs. Exception logs
  are capped at 200 MB.
- `prepare_log_root(path)` creates `<path>/lidar_log/` and unhides files
  left hidden below `path`.
- `prune_directory(path, max_size)` deletes the files with the oldest
  timestamp prefix until the directory fits. It returns the names it
  removed.
- `RetentionWorker(log_root, limits, interval=600.0)` prunes `type_0`
  against `realtime_bytes` and `type_1` against `exception_bytes`.
  - It prunes when `trigger()` is called, and at least every `interval`
    seconds.
  - `stop()` runs a final pass and stops the thread.

### `livoxkit.files`

This module holds the directory helpers the modules above use:

- `dir_total_size`
- `collect_file_names`, which returns `(timestamp prefix, name)` pairs sorted
  by prefix
- `unhide_file` and `unhide_files`
- `delete_hidden_files`
- `make_directory`, which returns `False` if the directory already exists

## Installation

```
pip install .
```

## Example

```python
from livoxkit.config import parse_config_text
from livoxkit.params import check_params

text = """
{
  "MID360": {
    "lidar_net_info": {"cmd_data_port": 56100, "push_msg_port": 56200,
                       "point_data_port": 56300, "imu_data_port": 56400,
                       "log_data_port": 56500},
    "host_net_info": [{"host_ip": "192.168.1.10",
                       "cmd_data_port": 56101, "push_msg_port": 56201,
                       "point_data_port": 56301, "imu_data_port": 56401,
                       "log_data_port": 56501}]
  }
}
"""
cfg = parse_config_text(text)
check_params(cfg.lidars, cfg.custom_lidars)
print(cfg.lidars[0].host_net_info.host_ip)   # 192.168.1.10
```

## What it does not do

- livoxkit does not talk to lidars over the network. It does no device
  discovery and opens no connections.
- It cannot change a lidar's work mode or upgrade firmware on a device.
- It does not receive or decode point-cloud packets.
- It provides no command-line program.
- It works only on configuration text, firmware files and log chunks that
  you supply.

## Tests

```
pip install .[test]
pytest
```