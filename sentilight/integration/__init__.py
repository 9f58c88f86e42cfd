"""
Integration layer for bulb control.
"""
from .base import DeviceIntegration
from .tasmota import TasmotaIntegration, encode_cmnd_for_url

__all__ = ["DeviceIntegration", "TasmotaIntegration", "encode_cmnd_for_url"]
