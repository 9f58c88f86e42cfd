"""
Unit tests for LightController.

Tests cover:
- Runtime setters and snapshots
- Mood pipeline success/failure conversion
- Preset commands bypassing the model
- Single-worker FIFO processing and callback delivery
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from sentilight.color import FALLBACK_COLOR, hsb_to_preview_color
from sentilight.controller import LightController, build_preset_command
from sentilight.errors import ConfigurationError, DeviceResponseError, ReplyParseError
from sentilight.integration.tasmota import TasmotaIntegration
from sentilight.models import (
    DEFAULT_COMMAND,
    LightingConfig,
    LightingFailure,
    LightingSuccess,
    ParsedResult,
    PRESET_EXPLANATION,
    SIMULATION_MARKER,
)


@pytest.fixture
def parsed():
    return ParsedResult(
        command=DEFAULT_COMMAND,
        explanation="밝고 따뜻한 노란색으로 활력을 줍니다.",
        color=hsb_to_preview_color(DEFAULT_COMMAND),
    )


@pytest.fixture
def mock_interpreter(parsed):
    interpreter = MagicMock()
    interpreter.interpret = AsyncMock(return_value=parsed)
    interpreter.http = MagicMock()
    interpreter.http.close = AsyncMock()
    return interpreter


@pytest.fixture
def mock_integration():
    """Real dispatch() logic over a mocked send_command()."""
    integration = TasmotaIntegration(MagicMock())
    integration.send_command = AsyncMock(return_value='{"POWER":"ON"}')
    integration.close = AsyncMock()
    return integration


@pytest.fixture
def controller(mock_interpreter, mock_integration):
    return LightController(
        mock_interpreter,
        mock_integration,
        LightingConfig(api_key="secret", model="gemini-2.5-flash-lite", device_address="192.168.0.9"),
    )


class TestSetters:
    """Runtime configuration setters."""

    def test_defaults(self, mock_interpreter, mock_integration):
        config = LightController(mock_interpreter, mock_integration).snapshot()
        assert config.api_key == ""
        assert config.model == "gemini-2.5-flash-lite"
        assert config.simulate is True

    def test_set_api_key_none_stores_empty(self, controller):
        controller.set_api_key(None)
        assert controller.snapshot().api_key == ""

    def test_set_model_trims_and_ignores_blank(self, controller):
        controller.set_model("  gemini-pro  ")
        assert controller.snapshot().model == "gemini-pro"
        controller.set_model("   ")
        controller.set_model(None)
        assert controller.snapshot().model == "gemini-pro"

    def test_set_device_address_and_simulate(self, controller):
        controller.set_device_address("10.0.0.5")
        controller.set_simulate(False)
        assert controller.snapshot().device_address == "10.0.0.5"
        assert controller.is_simulating() is False

    def test_snapshot_is_immutable(self, controller):
        before = controller.snapshot()
        controller.set_device_address("10.0.0.5")
        assert before.device_address == "192.168.0.9"


class TestMoodPipeline:
    """run_mood_pipeline never raises."""

    @pytest.mark.asyncio
    async def test_simulated_success(self, controller, mock_interpreter, mock_integration):
        result = await controller.run_mood_pipeline("기분이 좋아")

        assert isinstance(result, LightingSuccess)
        assert result.command == DEFAULT_COMMAND
        assert result.device_response == SIMULATION_MARKER
        assert result.explanation == "밝고 따뜻한 노란색으로 활력을 줍니다."
        assert result.color.hex == "#FFFF00"
        mock_interpreter.interpret.assert_awaited_once_with(
            "기분이 좋아", "secret", "gemini-2.5-flash-lite"
        )
        mock_integration.send_command.assert_not_called()

    @pytest.mark.asyncio
    async def test_live_success(self, controller, mock_integration):
        controller.set_simulate(False)
        result = await controller.run_mood_pipeline("기분이 좋아")

        assert isinstance(result, LightingSuccess)
        assert result.device_response == '{"POWER":"ON"}'
        mock_integration.send_command.assert_awaited_once_with(DEFAULT_COMMAND, "192.168.0.9")

    @pytest.mark.asyncio
    async def test_interpreter_failure_reports_na(self, controller, mock_interpreter):
        mock_interpreter.interpret.side_effect = ConfigurationError("Gemini API key is not configured.")
        result = await controller.run_mood_pipeline("hi")

        assert isinstance(result, LightingFailure)
        assert result.command is None
        assert result.error_kind == "configuration"
        assert result.message == "명령: N/A / 오류: Gemini API key is not configured."

    @pytest.mark.asyncio
    async def test_parse_failure_kind(self, controller, mock_interpreter):
        mock_interpreter.interpret.side_effect = ReplyParseError("Gemini produced no text.")
        result = await controller.run_mood_pipeline("hi")
        assert result.error_kind == "parse"

    @pytest.mark.asyncio
    async def test_dispatch_failure_carries_command(self, controller, mock_integration):
        controller.set_simulate(False)
        mock_integration.send_command.side_effect = DeviceResponseError(
            503, "http://192.168.0.9/cm?cmnd=x", "unavailable"
        )
        result = await controller.run_mood_pipeline("hi")

        assert isinstance(result, LightingFailure)
        assert result.command == DEFAULT_COMMAND
        assert result.error_kind == "transport"
        assert result.message.startswith(f"명령: {DEFAULT_COMMAND} / 오류: ")
        assert "HTTP 503" in result.message

    @pytest.mark.asyncio
    async def test_live_without_address_is_configuration_error(self, controller):
        controller.set_simulate(False)
        controller.set_device_address("")
        controller.integration = TasmotaIntegration(MagicMock())

        result = await controller.run_mood_pipeline("hi")

        assert isinstance(result, LightingFailure)
        assert result.error_kind == "configuration"

    @pytest.mark.asyncio
    async def test_unexpected_error_kind(self, controller, mock_interpreter):
        mock_interpreter.interpret.side_effect = RuntimeError("boom")
        result = await controller.run_mood_pipeline("hi")
        assert result.error_kind == "unexpected"
        assert result.message.endswith("boom")


class TestPreset:
    """Presets skip the model."""

    def test_build_preset_command(self):
        assert build_preset_command("200,80,60", 40, 300) == "HSBCOLOR 200,80,60;Dimmer 40;CT 300"

    @pytest.mark.asyncio
    async def test_preset_simulated(self, controller, mock_interpreter):
        result = await controller.run_preset("120,100,100", 80, 200)

        assert isinstance(result, LightingSuccess)
        assert result.command == "HSBCOLOR 120,100,100;Dimmer 80;CT 200"
        assert result.explanation == PRESET_EXPLANATION
        assert result.device_response == SIMULATION_MARKER
        assert result.color.hex == "#00FF00"
        mock_interpreter.interpret.assert_not_called()

    @pytest.mark.asyncio
    async def test_preset_failure(self, controller, mock_integration):
        controller.set_simulate(False)
        mock_integration.send_command.side_effect = DeviceResponseError(500, "http://x/cm", "")
        result = await controller.run_preset("0,0,0", 0, 500)

        assert isinstance(result, LightingFailure)
        assert result.command == "HSBCOLOR 0,0,0;Dimmer 0;CT 500"


class TestWorker:
    """Single worker, FIFO order, callbacks."""

    @pytest.mark.asyncio
    async def test_future_resolves_and_callback_fires(self, controller):
        received = []
        await controller.start()
        try:
            result = await controller.process_mood_and_control_light("hi", received.append)
            await asyncio.sleep(0)
        finally:
            await controller.stop()

        assert isinstance(result, LightingSuccess)
        assert received == [result]

    @pytest.mark.asyncio
    async def test_jobs_run_one_at_a_time_in_order(self, controller, mock_interpreter, parsed):
        events = []

        async def slow_interpret(mood_text, api_key, model):
            events.append(f"start {mood_text}")
            await asyncio.sleep(0.01)
            events.append(f"end {mood_text}")
            return parsed

        mock_interpreter.interpret.side_effect = slow_interpret
        try:
            futures = [controller.process_mood_and_control_light(text) for text in ("a", "b", "c")]
            await asyncio.gather(*futures)
        finally:
            await controller.stop()

        assert events == ["start a", "end a", "start b", "end b", "start c", "end c"]

    @pytest.mark.asyncio
    async def test_worker_survives_failures(self, controller, mock_interpreter, parsed):
        mock_interpreter.interpret.side_effect = [RuntimeError("boom"), parsed]
        try:
            first = await controller.process_mood_and_control_light("a")
            second = await controller.send_preset("10,10,10", 10, 200)
            third = await controller.process_mood_and_control_light("b")
        finally:
            await controller.stop()

        assert isinstance(first, LightingFailure)
        assert isinstance(second, LightingSuccess)
        assert isinstance(third, LightingSuccess)

    @pytest.mark.asyncio
    async def test_stop_cancels_queued_jobs_and_closes(self, controller, mock_interpreter, mock_integration):
        blocker = asyncio.Event()

        async def blocked(*args):
            await blocker.wait()

        mock_interpreter.interpret.side_effect = blocked
        running = controller.process_mood_and_control_light("a")
        queued = controller.process_mood_and_control_light("b")
        await asyncio.sleep(0)

        await controller.stop()

        assert running.cancelled()
        assert queued.cancelled()
        mock_integration.close.assert_awaited_once()
        mock_interpreter.http.close.assert_awaited_once()


def test_fallback_color_for_preview():
    """A preset with an unreadable triple still yields a preview color."""
    assert hsb_to_preview_color(build_preset_command("x,y,z", 10, 200)) == FALLBACK_COLOR
