# core/fact_extractor.py
import json
import logging
from typing import List
from pydantic import ValidationError
from config.settings import settings
from core.anthropic_client import complete, strip_code_fences
from model.reference import Fact
from util.timing import timed

logger = logging.getLogger(__name__)

DEDUP_KEY_CHARS = 80


def chunk_text(
    text: str,
    size: int = settings.FACT_CHUNK_CHARS,
    overlap: int = settings.FACT_CHUNK_OVERLAP,
) -> List[str]:
    """
    Split long reference text into overlapping windows so facts straddling a
    boundary are seen whole at least once.
    """
    if len(text) <= size:
        return [text]
    step = max(1, size - overlap)
    chunks: List[str] = []
    start = 0
    while start < len(text):
        chunks.append(text[start : start + size])
        if start + size >= len(text):
            break
        start += step
    return chunks


def parse_facts(raw: str) -> List[dict]:
    """
    JSON array of fact objects from a model reply. Raises ValueError when the
    reply is not an array.
    """
    data = json.loads(strip_code_fences(raw))
    if not isinstance(data, list):
        raise ValueError("fact extraction reply is not a JSON array")
    return [d for d in data if isinstance(d, dict)]


def deduplicate_facts(raw_facts: List[dict]) -> List[Fact]:
    """Drop repeats (first 80 chars, case-insensitive) and renumber fact_001..."""
    seen: set = set()
    unique: List[Fact] = []
    for obj in raw_facts:
        text = str(obj.get("text") or "").strip()
        if not text:
            continue
        key = text[:DEDUP_KEY_CHARS].lower().strip()
        if key in seen:
            continue
        try:
            fact = Fact.model_validate(
                {**obj, "id": f"fact_{len(unique) + 1:03d}", "text": text}
            )
        except ValidationError:
            logger.warning("facts.invalid text_len=%d", len(text))
            continue
        seen.add(key)
        unique.append(fact)
    return unique


async def extract_facts(
    content_text: str,
    *,
    api_key: str,
    model: str | None = None,
    api_url: str | None = None,
) -> List[Fact]:
    """
    Extract substantiable facts from a reference document's full text. Chunks
    whose reply cannot be parsed are skipped; HTTP failures propagate.
    """
    model = model or settings.ANTHROPIC_MODEL
    chunks = chunk_text(content_text)
    collected: List[dict] = []
    with timed(logger, "facts.extract", chunks=len(chunks), model=model):
        for i, chunk in enumerate(chunks, start=1):
            label = f"\n\n[Document chunk {i} of {len(chunks)}]" if len(chunks) > 1 else ""
            reply = await complete(
                api_key=api_key,
                model=model,
                api_url=api_url or settings.ANTHROPIC_API_URL,
                system=settings.FACT_SYSTEM_PROMPT,
                user=f"{label}\n\n---\n\n{chunk}".strip(),
                max_tokens=settings.FACT_MAX_TOKENS,
                timeout=120.0,
                op="ai.facts",
            )
            try:
                collected.extend(parse_facts(reply))
            except ValueError:
                # json.JSONDecodeError is a ValueError too
                logger.error("facts.parse.error chunk=%d/%d", i, len(chunks))
    facts = deduplicate_facts(collected)
    logger.info("facts.extracted raw=%d unique=%d", len(collected), len(facts))
    return facts
