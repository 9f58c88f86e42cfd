"""
LightController: mood text in, lighting result out.

Jobs run one at a time on a single asyncio worker in FIFO order. Each job
reads a snapshot of the runtime config when it starts, so setters called
mid-run only affect later jobs. Every error is converted into a
LightingFailure at this boundary and the worker keeps serving.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .color import hsb_to_preview_color
from .errors import LightingError
from .integration.base import DeviceIntegration
from .interpreter import MoodInterpreter
from .models import (
    LightingConfig,
    LightingFailure,
    LightingResult,
    LightingSuccess,
    PRESET_EXPLANATION,
)

logger = logging.getLogger(__name__)

ResultCallback = Callable[[LightingResult], None]
Job = Callable[[], Awaitable[LightingResult]]


def build_preset_command(hsb: str, dimmer: int, ct: int) -> str:
    return f"HSBCOLOR {hsb};Dimmer {dimmer};CT {ct}"


def failure_from_exception(command: Optional[str], exc: BaseException) -> LightingFailure:
    """Single failure message carrying the attempted command and the cause."""
    error_kind = exc.error_kind if isinstance(exc, LightingError) else "unexpected"
    return LightingFailure(
        message=f"명령: {command or 'N/A'} / 오류: {exc}",
        command=command,
        error_kind=error_kind,
    )


class LightController:
    """Owns runtime config and serializes pipeline runs on one worker."""

    def __init__(
        self,
        interpreter: MoodInterpreter,
        integration: DeviceIntegration,
        config: Optional[LightingConfig] = None,
    ):
        self.interpreter = interpreter
        self.integration = integration
        self._config = config or LightingConfig()
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    # -- runtime config ---------------------------------------------------

    def snapshot(self) -> LightingConfig:
        return self._config

    def _update(self, **changes):
        self._config = self._config.model_copy(update=changes)

    def set_api_key(self, api_key: Optional[str]):
        self._update(api_key=api_key or "")

    def set_model(self, model: Optional[str]):
        if model and model.strip():
            self._update(model=model.strip())

    def set_device_address(self, device_address: Optional[str]):
        self._update(device_address=device_address)

    def set_simulate(self, simulate: bool):
        self._update(simulate=bool(simulate))

    def is_simulating(self) -> bool:
        return self._config.simulate

    # -- pipeline jobs ----------------------------------------------------

    async def run_mood_pipeline(self, mood_text: str) -> LightingResult:
        """Interpret the mood, then dispatch the command. Never raises."""
        config = self.snapshot()
        command: Optional[str] = None
        try:
            parsed = await self.interpreter.interpret(mood_text, config.api_key, config.model)
            command = parsed.command

            dispatch = await self.integration.dispatch(
                command, config.simulate, config.device_address
            )
            return LightingSuccess(
                command=command,
                device_response=dispatch.response,
                explanation=parsed.explanation,
                color=parsed.color,
            )
        except Exception as e:
            logger.error(f"Lighting control failed: {e}", exc_info=True)
            return failure_from_exception(command, e)

    async def run_preset(self, hsb: str, dimmer: int, ct: int) -> LightingResult:
        """Dispatch a fixed command without consulting the model. Never raises."""
        config = self.snapshot()
        command = build_preset_command(hsb, dimmer, ct)
        try:
            color = hsb_to_preview_color(command)
            dispatch = await self.integration.dispatch(
                command, config.simulate, config.device_address
            )
            return LightingSuccess(
                command=command,
                device_response=dispatch.response,
                explanation=PRESET_EXPLANATION,
                color=color,
            )
        except Exception as e:
            logger.error(f"Preset dispatch failed: {e}", exc_info=True)
            return failure_from_exception(command, e)

    # -- worker -----------------------------------------------------------

    def _ensure_worker(self):
        if self._worker is None or self._worker.done():
            self._queue = asyncio.Queue()
            self._worker = asyncio.get_running_loop().create_task(self._run_worker())

    async def _run_worker(self):
        while True:
            job, future, callback = await self._queue.get()
            try:
                result = await job()
                if not future.done():
                    future.set_result(result)
                if callback is not None:
                    future.get_loop().call_soon_threadsafe(callback, result)
            except asyncio.CancelledError:
                future.cancel()
                raise
            finally:
                self._queue.task_done()

    def _submit(self, job: Job, callback: Optional[ResultCallback]) -> "asyncio.Future[LightingResult]":
        self._ensure_worker()
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((job, future, callback))
        return future

    def process_mood_and_control_light(
        self, mood_text: str, callback: Optional[ResultCallback] = None
    ) -> "asyncio.Future[LightingResult]":
        """Queue a full pipeline run; the future and the callback both receive the result."""
        return self._submit(lambda: self.run_mood_pipeline(mood_text), callback)

    def send_preset(
        self, hsb: str, dimmer: int, ct: int, callback: Optional[ResultCallback] = None
    ) -> "asyncio.Future[LightingResult]":
        """Queue a preset command that bypasses the model."""
        return self._submit(lambda: self.run_preset(hsb, dimmer, ct), callback)

    async def start(self):
        self._ensure_worker()
        logger.info("Light controller worker started")

    async def stop(self):
        """Stop the worker, cancel queued jobs and close HTTP sessions."""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        if self._queue is not None:
            while not self._queue.empty():
                _, future, _ = self._queue.get_nowait()
                future.cancel()

        await self.integration.close()
        await self.interpreter.http.close()
        logger.info("Light controller stopped")
