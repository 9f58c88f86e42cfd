"""
SentiLight Server - voice mood lighting assistant
Main FastAPI application: mood text -> Gemini -> Tasmota bulb.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .color import hsb_to_preview_color
from .config import settings
from .controller import LightController
from .integration.tasmota import TasmotaIntegration
from .interpreter import MoodInterpreter
from .models import (
    LightingConfig,
    MoodCommandRequest,
    PresetRequest,
    PreviewColorRequest,
    SettingsUpdate,
    SettingsView,
)
from .transport import HttpClient

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(settings.log_file) if settings.log_file else logging.StreamHandler(),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# Global controller instance
controller: Optional[LightController] = None


def build_controller() -> LightController:
    """Wire the shared HTTP client, interpreter and bulb integration from settings."""
    http = HttpClient(timeout_seconds=settings.http_timeout_seconds)
    interpreter = MoodInterpreter(
        http,
        base_url=settings.gemini_base_url,
        api_version=settings.gemini_api_version,
        prompt_path=settings.mood_prompt_path,
    )
    integration = TasmotaIntegration(http, {"status_probe": settings.status_probe_enabled})
    config = LightingConfig(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        device_address=settings.tasmota_host,
        simulate=settings.simulate,
    )
    return LightController(interpreter, integration, config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global controller

    # Startup
    logger.info("Starting SentiLight Server...")
    controller = build_controller()
    await controller.start()

    config = controller.snapshot()
    if not config.api_key:
        logger.warning("GEMINI_API_KEY is not set - mood requests will fail until it is configured")
    logger.info(
        f"Model: {config.model}, device: {config.device_address}, "
        f"mode: {'simulation' if config.simulate else 'live'}"
    )

    yield

    # Shutdown
    logger.info("Shutting down SentiLight Server...")
    if controller:
        await controller.stop()


# Create FastAPI app
app = FastAPI(
    title="SentiLight",
    description="Voice mood lighting assistant for Tasmota bulbs",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_controller() -> LightController:
    if not controller:
        raise HTTPException(status_code=503, detail="Light controller not available")
    return controller


def _settings_view(config: LightingConfig) -> SettingsView:
    return SettingsView(
        model=config.model,
        device_address=config.device_address,
        simulate=config.simulate,
        api_key_set=bool(config.api_key and config.api_key.strip()),
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "SentiLight",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint. The bulb is only probed in live mode."""
    if not controller:
        return {"status": "degraded", "controller": "unavailable"}

    config = controller.snapshot()
    if config.simulate:
        return {"status": "healthy", "mode": "simulation", "device": "skipped"}

    reachable = await controller.integration.health_check(config.device_address)
    return {
        "status": "healthy" if reachable else "degraded",
        "mode": "live",
        "device": "connected" if reachable else "disconnected",
    }


@app.post("/mood")
async def control_by_mood(request: MoodCommandRequest):
    """
    Interpret recognized speech and drive the bulb.

    Returns a LightingSuccess or LightingFailure body; pipeline failures are
    reported in the body, not as HTTP errors.
    """
    light_controller = _require_controller()
    if not request.mood_text.strip():
        raise HTTPException(status_code=400, detail="mood_text must not be blank")

    result = await light_controller.process_mood_and_control_light(request.mood_text)
    return result.model_dump()


@app.post("/preset")
async def apply_preset(request: PresetRequest):
    """Send a fixed HSBCOLOR/Dimmer/CT command without consulting the model."""
    light_controller = _require_controller()
    result = await light_controller.send_preset(request.hsb, request.dimmer, request.ct)
    return result.model_dump()


@app.post("/preview-color")
async def preview_color(request: PreviewColorRequest):
    """Preview color for a command string (falls back to #181B1C)."""
    return hsb_to_preview_color(request.command).model_dump()


@app.get("/settings")
async def get_settings():
    """Current runtime configuration (the API key is never returned)."""
    light_controller = _require_controller()
    return _settings_view(light_controller.snapshot()).model_dump()


@app.put("/settings")
async def update_settings(update: SettingsUpdate):
    """Apply a partial runtime configuration update."""
    light_controller = _require_controller()

    if update.api_key is not None:
        light_controller.set_api_key(update.api_key)
    if update.model is not None:
        light_controller.set_model(update.model)
    if update.device_address is not None:
        light_controller.set_device_address(update.device_address)
    if update.simulate is not None:
        light_controller.set_simulate(update.simulate)
        logger.info(f"Mode switched to {'simulation' if update.simulate else 'live'}")

    return _settings_view(light_controller.snapshot()).model_dump()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sentilight.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload
    )
