"""
Base integration layer for bulb control.
All device integrations should inherit from DeviceIntegration.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models import DispatchResult, SIMULATION_MARKER


class DeviceIntegration(ABC):
    """Abstract base class for device integrations."""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize integration with configuration."""
        self.config = config or {}
        self.name = self.__class__.__name__

    async def dispatch(
        self, command: str, simulate: bool, device_address: Optional[str]
    ) -> DispatchResult:
        """
        Send a command to the device, or skip I/O entirely when simulating.

        Args:
            command: Bulb command string
            simulate: When True no network I/O happens
            device_address: Host (optionally host:port) of the device

        Returns:
            DispatchResult with the device reply or the simulation marker
        """
        if simulate:
            return DispatchResult(command=command, response=SIMULATION_MARKER, simulated=True)
        response = await self.send_command(command, device_address)
        return DispatchResult(command=command, response=response, simulated=False)

    @abstractmethod
    async def send_command(self, command: str, device_address: Optional[str]) -> str:
        """
        Deliver a command to a live device.

        Returns:
            Raw response text from the device
        """
        pass

    @abstractmethod
    async def health_check(self, device_address: Optional[str]) -> bool:
        """
        Check if the device is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass

    async def close(self):
        """Release network resources."""
        pass
