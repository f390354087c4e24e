"""Configuration parsing, parameter checks, firmware packages and log-file handling for Livox LiDAR devices."""

__version__ = "0.1.0"