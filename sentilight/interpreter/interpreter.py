"""
MoodInterpreter: free-text mood -> structured bulb command via Gemini.

Flow:
  - render the fixed prompt around the mood text
  - POST it to generateContent (single turn, role "user")
  - up to 2 attempts, 300 ms apart; transport errors, non-2xx statuses and
    replies without candidate text all count as a failed attempt
  - pull [COMMAND: ...] / [EXPLANATION: ...] out of the reply text
  - derive the preview color from the resolved command
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

from ..color import hsb_to_preview_color
from ..errors import ConfigurationError, GeminiResponseError, LightingError, ReplyParseError
from ..models import ParsedResult
from ..transport import HttpClient
from .parser import extract_command, extract_explanation

logger = logging.getLogger(__name__)

# Default mood prompt (used when prompt file is not found)
DEFAULT_MOOD_PROMPT = (
    "사용자 기분: '{mood_text}'. 이를 Tasmota 전구 제어 명령으로 변환하세요. "
    "결과 형식은 [COMMAND: HSBCOLOR hue,saturation,brightness;Dimmer value;CT temperature] "
    "[EXPLANATION: 기분 변화에 대한 설명] 으로만 출력하세요. "
    "(hue:0-359, saturation/brightness:0-100, Dimmer:0-100, CT:153-500). "
    "예: [COMMAND: HSBCOLOR 60,100,100;Dimmer 70;CT 250] "
    "[EXPLANATION: 밝고 따뜻한 노란색으로 활력을 줍니다.]"
)

MAX_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 0.3


def model_path(model: str) -> str:
    """Prefix ``models/`` unless the identifier already carries it."""
    model = model.strip()
    return model if model.startswith("models/") else f"models/{model}"


class MoodInterpreter:
    """Turns recognized speech into a ParsedResult with one Gemini call."""

    def __init__(
        self,
        http: HttpClient,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1",
        prompt_path: Optional[str] = None,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version.strip("/")

        prompt_file = Path(prompt_path) if prompt_path else None
        if prompt_file is not None and prompt_file.exists():
            self.prompt_template = prompt_file.read_text(encoding="utf-8")
            logger.info(f"Loaded mood prompt from {prompt_path}")
        else:
            self.prompt_template = DEFAULT_MOOD_PROMPT
            logger.info(
                f"Mood prompt file not found at {prompt_path!r}, using built-in default"
            )

    def render_prompt(self, mood_text: str) -> str:
        return self.prompt_template.format(mood_text=mood_text)

    def endpoint(self, model: str) -> str:
        """generateContent URL without the key query parameter."""
        return f"{self.base_url}/{self.api_version}/{model_path(model)}:generateContent"

    def request_url(self, model: str, api_key: str) -> str:
        return f"{self.endpoint(model)}?key={quote(api_key, safe='')}"

    @staticmethod
    def build_request_body(prompt: str) -> Dict[str, Any]:
        return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

    @staticmethod
    def parse_reply(body: str) -> str:
        """
        Pull ``candidates[0].content.parts[0].text`` out of a generateContent body.

        Raises:
            ReplyParseError: body is not JSON, has no candidates, no
                content/parts, or blank text.
        """
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ReplyParseError(f"Gemini reply is not valid JSON: {exc}", raw=body) from exc

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates:
            raise ReplyParseError("Gemini reply is empty or has no candidates.", raw=body)

        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts:
            raise ReplyParseError("Gemini reply has no content/parts.", raw=body)

        first_part = parts[0]
        text = first_part.get("text") if isinstance(first_part, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ReplyParseError("Gemini produced no text.", raw=body)
        return text.strip()

    async def generate(self, mood_text: str, api_key: str, model: str) -> str:
        """
        Send the mood prompt to Gemini and return the trimmed reply text.

        Raises:
            ConfigurationError: API key is unset or blank.
            LightingError: last failure once both attempts are spent.
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "Gemini API key is not configured. Set GEMINI_API_KEY or update /settings."
            )

        endpoint = self.endpoint(model)
        url = self.request_url(model, api_key)
        payload = self.build_request_body(self.render_prompt(mood_text))

        last_error: Optional[LightingError] = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                result = await self.http.post(url, json=payload)
                if not result.ok:
                    raise GeminiResponseError(result.status, endpoint, result.body)
                return self.parse_reply(result.body)
            except LightingError as e:
                last_error = e
                logger.warning(f"Gemini attempt {attempt}/{MAX_ATTEMPTS} failed: {e}")
                if attempt < MAX_ATTEMPTS:
                    await asyncio.sleep(RETRY_DELAY_SECONDS)

        raise last_error

    async def interpret(self, mood_text: str, api_key: str, model: str) -> ParsedResult:
        """Full interpretation: Gemini reply -> command, explanation, preview color."""
        reply = await self.generate(mood_text, api_key, model)
        command = extract_command(reply)
        explanation = extract_explanation(reply, command)
        logger.info(f"Gemini command: {command}")
        return ParsedResult(
            command=command,
            explanation=explanation,
            color=hsb_to_preview_color(command),
        )
