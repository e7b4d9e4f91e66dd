# completion.py
# Completion service: the only code that talks to the language model.
#
# Wraps an OpenAI-compatible client pointed at OpenRouter. Every failure
# surfaces as ServiceError. In JSON mode the reply is cleaned of markdown
# fences and surrounding prose, but never repaired: if no JSON object can be
# found the text is returned as-is and the caller's parser rejects it.

import json
import re

from openai import OpenAI, OpenAIError

from plan_runner.config import Settings


class ServiceError(Exception):
    """Raised when the completion service cannot produce a reply."""


JSON_ONLY_SUFFIX = (
    "\n\nPlease respond with valid JSON only. "
    "Do not include any markdown formatting or additional text."
)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


def extract_json_object(text: str) -> str:
    """
    Strip a wrapping code fence and return the first top-level JSON object.

    Only fences at the very start and end of the reply are removed, so
    backticks inside JSON strings survive. Returns the stripped text unchanged
    when it already parses as JSON or when no decodable object is present.
    """
    cleaned = _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", text.strip())).strip()
    try:
        json.loads(cleaned)
        return cleaned
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    while start != -1:
        try:
            _, end = decoder.raw_decode(cleaned, start)
            return cleaned[start:end]
        except json.JSONDecodeError:
            start = cleaned.find("{", start + 1)
    return cleaned


class CompletionService:
    """
    Text generation over OpenRouter.

    Example:
        service = CompletionService(Settings.from_env())
        text = service.generate("Say hi", temperature=0.2)
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: OpenAI | None = None
        if settings.completion_configured:
            self._client = OpenAI(
                base_url=settings.openrouter_base_url,
                api_key=settings.openrouter_api_key,
                default_headers=settings.attribution_headers() or None,
            )

    @property
    def configured(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        json_mode: bool = False,
        temperature: float = 0.7,
        model: str | None = None,
    ) -> str:
        if self._client is None:
            raise ServiceError("Completion service is not configured: OPENROUTER_API_KEY is not set")

        if json_mode:
            prompt = prompt + JSON_ONLY_SUFFIX

        try:
            response = self._client.chat.completions.create(
                model=model or self._settings.planner_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=self._settings.max_tokens,
            )
        except OpenAIError as exc:
            raise ServiceError(f"OpenRouter: {exc}") from exc

        if not response.choices or not response.choices[0].message.content:
            raise ServiceError("OpenRouter: empty completion")

        text = response.choices[0].message.content.strip()
        return extract_json_object(text) if json_mode else text
