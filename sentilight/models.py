"""
Data models for lighting commands, pipeline results and API bodies.
"""
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


# Canonical fallbacks; see interpreter.parser.extract_command
DEFAULT_COMMAND = "HSBCOLOR 60,100,100;Dimmer 70;CT 250"
OFF_COMMAND = "HSBCOLOR 0,0,0;Dimmer 0;CT 500"

SIMULATION_MARKER = "시뮬레이션 모드(전송 안 함)"
PRESET_EXPLANATION = "프리셋 적용"


class LightingConfig(BaseModel):
    """Runtime configuration read at the start of every pipeline run."""

    api_key: str = ""
    model: str = "gemini-2.5-flash-lite"
    device_address: Optional[str] = None
    simulate: bool = True

    model_config = ConfigDict(frozen=True)


class PreviewColor(BaseModel):
    """Opaque RGB color used for UI feedback only."""

    red: int = Field(..., ge=0, le=255)
    green: int = Field(..., ge=0, le=255)
    blue: int = Field(..., ge=0, le=255)
    alpha: int = 255

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_hex(cls, value: str) -> "PreviewColor":
        value = value.lstrip("#")
        return cls(
            red=int(value[0:2], 16),
            green=int(value[2:4], 16),
            blue=int(value[4:6], 16),
        )

    @computed_field
    @property
    def hex(self) -> str:
        return f"#{self.red:02X}{self.green:02X}{self.blue:02X}"

    @computed_field
    @property
    def argb(self) -> int:
        """Packed 0xAARRGGBB value."""
        return (self.alpha << 24) | (self.red << 16) | (self.green << 8) | self.blue


class ParsedResult(BaseModel):
    """Output of the mood interpreter."""

    command: str
    explanation: str
    color: PreviewColor

    model_config = ConfigDict(frozen=True)


class DispatchResult(BaseModel):
    """Output of a device dispatch."""

    command: str
    response: str
    simulated: bool

    model_config = ConfigDict(frozen=True)


class LightingSuccess(BaseModel):
    """A full pipeline run that reached the device (or the simulator)."""

    status: Literal["success"] = "success"
    command: str
    device_response: str
    explanation: str
    color: PreviewColor

    model_config = ConfigDict(frozen=True)


class LightingFailure(BaseModel):
    """A pipeline run that stopped on an error."""

    status: Literal["failure"] = "failure"
    message: str
    command: Optional[str] = None
    error_kind: str = "unexpected"

    model_config = ConfigDict(frozen=True)


LightingResult = Union[LightingSuccess, LightingFailure]


# API bodies

# H 0-359, S 0-100, B 0-100
HSB_VALUE_PATTERN = r"^(?:3[0-5]\d|[12]\d\d|[1-9]?\d),(?:100|[1-9]?\d),(?:100|[1-9]?\d)$"


class MoodCommandRequest(BaseModel):
    """Recognized speech text from the client."""

    mood_text: str = Field(..., min_length=1)


class PresetRequest(BaseModel):
    """Direct command injection that skips the LLM."""

    hsb: str = Field(..., pattern=HSB_VALUE_PATTERN, description="H,S,B triple")
    dimmer: int = Field(..., ge=0, le=100)
    ct: int = Field(..., ge=153, le=500)


class PreviewColorRequest(BaseModel):
    """Command string to derive a preview color from."""

    command: str


class SettingsUpdate(BaseModel):
    """Partial runtime configuration update."""

    api_key: Optional[str] = None
    model: Optional[str] = None
    device_address: Optional[str] = None
    simulate: Optional[bool] = None


class SettingsView(BaseModel):
    """Runtime configuration as exposed over HTTP (the API key is never echoed)."""

    model: str
    device_address: Optional[str] = None
    simulate: bool
    api_key_set: bool
