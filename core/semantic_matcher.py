# core/semantic_matcher.py
import json
import logging
from typing import Protocol, Union
from pydantic import ValidationError
from config.settings import settings
from core.anthropic_client import complete, strip_code_fences
from model.matching import SemanticMatchRequest, SemanticMatchResponse

logger = logging.getLogger(__name__)


class SemanticMatcher(Protocol):
    """
    Tier-2 collaborator: pick which (if any) of up to eight candidate excerpts
    substantiates a claim. Implementations may raise; the orchestrator records
    any failure as an unmatched claim.
    """

    async def __call__(
        self, request: SemanticMatchRequest
    ) -> Union[SemanticMatchResponse, dict]: ...


def build_user_prompt(request: SemanticMatchRequest) -> str:
    refs = "\n\n".join(
        f"[{i}] {c.name}\nContent excerpt: {c.excerpt or 'No excerpt available'}"
        for i, c in enumerate(request.candidates, start=1)
    )
    return (
        f'CLAIM:\n"{request.claimText}"\n\n'
        f"REFERENCES:\n{refs or '(none)'}\n\n"
        "Return JSON only."
    )


def parse_match_response(raw: str) -> SemanticMatchResponse:
    """
    Parse the model's reply. Raises ValueError when it is not a JSON object of
    the expected shape.
    """
    text = strip_code_fences(raw)
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse semantic matcher response as JSON: {e.msg}") from e
    if not isinstance(obj, dict):
        raise ValueError("Semantic matcher response is not a JSON object")
    try:
        return SemanticMatchResponse.model_validate(obj)
    except ValidationError as e:
        raise ValueError(f"Malformed semantic matcher response: {e.error_count()} error(s)") from e


class AnthropicSemanticMatcher:
    """SemanticMatcher over the Anthropic Messages API (user-supplied key)."""

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        api_url: str | None = None,
        http_timeout: float = 45.0,
    ) -> None:
        self._api_key = api_key
        self._model = model or settings.ANTHROPIC_MODEL
        self._url = api_url or settings.ANTHROPIC_API_URL
        self._timeout = http_timeout

    async def __call__(self, request: SemanticMatchRequest) -> SemanticMatchResponse:
        text = await complete(
            api_key=self._api_key,
            model=self._model,
            api_url=self._url,
            system=settings.MATCH_SYSTEM_PROMPT,
            user=build_user_prompt(request),
            max_tokens=1024,
            timeout=self._timeout,
            op="ai.match",
        )
        result = parse_match_response(text)
        logger.info(
            "ai.match.result matched=%s index=%s conf=%s",
            result.matched,
            result.referenceIndex,
            result.confidence,
        )
        return result
