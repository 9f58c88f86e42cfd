"""
Tasmota integration: commands travel as ``GET http://<host>/cm?cmnd=<encoded>``.
"""
import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from ..errors import ConfigurationError, DeviceResponseError, LightingError
from ..transport import HttpClient
from .base import DeviceIntegration

logger = logging.getLogger(__name__)

STATUS_COMMAND = "Status 11"
MAX_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 0.2


def encode_cmnd_for_url(command: str) -> str:
    """Percent-encode a command for the cmnd query value; spaces, commas and semicolons included."""
    return quote(command, safe="")


class TasmotaIntegration(DeviceIntegration):
    """Integration for the Tasmota HTTP command API."""

    def __init__(self, http: HttpClient, config: Dict[str, Any] = None):
        super().__init__(config)
        self.http = http
        self.status_probe = self.config.get("status_probe", True)

    @staticmethod
    def ensure_address(device_address: Optional[str]) -> str:
        if not device_address or not device_address.strip():
            raise ConfigurationError("Tasmota IP address is not configured.")
        return device_address.strip()

    @staticmethod
    def command_url(device_address: str, command: str) -> str:
        return f"http://{device_address}/cm?cmnd={encode_cmnd_for_url(command)}"

    async def _send_raw(self, device_address: str, command: str, raise_on_status: bool = True) -> str:
        """GET the encoded command; 2 attempts, 200 ms apart."""
        url = self.command_url(device_address, command)

        last_error: Optional[LightingError] = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                result = await self.http.get(url)
                if not result.ok and raise_on_status:
                    raise DeviceResponseError(result.status, url, result.body)
                return result.body
            except LightingError as e:
                last_error = e
                logger.warning(f"Tasmota attempt {attempt}/{MAX_ATTEMPTS} failed: {e}")
                if attempt < MAX_ATTEMPTS:
                    await asyncio.sleep(RETRY_DELAY_SECONDS)

        raise last_error

    async def probe_status(self, device_address: str):
        """Fire a Status 11 request; any failure is logged and ignored."""
        try:
            await self._send_raw(device_address, STATUS_COMMAND, raise_on_status=False)
        except LightingError as e:
            logger.warning(f"Tasmota status probe failed (ignored): {e}")

    async def send_command(self, command: str, device_address: Optional[str]) -> str:
        """
        Send a command to the bulb.

        Raises:
            ConfigurationError: no device address.
            LightingError: last failure once both attempts are spent.
        """
        address = self.ensure_address(device_address)
        if self.status_probe:
            await self.probe_status(address)

        body = await self._send_raw(address, command)
        logger.info(f"Tasmota command sent to {address}: {command}")
        return body

    async def health_check(self, device_address: Optional[str]) -> bool:
        """Check if the bulb answers a Status 11 request."""
        if not device_address or not device_address.strip():
            return False
        try:
            result = await self.http.get(self.command_url(device_address.strip(), STATUS_COMMAND))
            return result.ok
        except LightingError as e:
            logger.error(f"Health check failed: {e}")
            return False

    async def close(self):
        await self.http.close()
