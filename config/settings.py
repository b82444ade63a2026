# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    PERSISTENCE_TTL_SECONDS: int = Field(
        default=2 * 60 * 60, validation_alias="PERSISTENCE_TTL_SECONDS"
    )

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    MAX_FILE_MB: int = Field(default=25, validation_alias="MAX_FILE_MB")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Anthropic Settings
    ANTHROPIC_API_URL: str = Field(..., validation_alias="ANTHROPIC_API_URL")
    ANTHROPIC_MODEL: str = Field(..., validation_alias="ANTHROPIC_MODEL")
    ANTHROPIC_VERSION: str = Field(..., validation_alias="ANTHROPIC_VERSION")

    # Substantiation matching
    MATCH_TOP_N: int = Field(default=8, validation_alias="MATCH_TOP_N")
    MATCH_TIER0_ACCEPT: float = Field(default=0.75, validation_alias="MATCH_TIER0_ACCEPT")
    MATCH_TIER0_CANDIDATE: float = Field(
        default=0.6, validation_alias="MATCH_TIER0_CANDIDATE"
    )
    MATCH_EXCERPT_CHARS: int = Field(default=2000, validation_alias="MATCH_EXCERPT_CHARS")
    MATCH_CONCURRENCY: int = Field(default=1, validation_alias="MATCH_CONCURRENCY")
    MATCH_TIMEOUT_SECONDS: float = Field(
        default=45.0, validation_alias="MATCH_TIMEOUT_SECONDS"
    )

    # Claim pinning
    POSITION_USE_MODEL_HINT: bool = Field(
        default=False, validation_alias="POSITION_USE_MODEL_HINT"
    )

    # Fact extraction
    FACT_CHUNK_CHARS: int = 24000
    FACT_CHUNK_OVERLAP: int = 1200
    FACT_MAX_TOKENS: int = 4096

    # Logging knobs
    LOGGER_NAME: str = "claimtrace"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    # Prompts
    MATCH_SYSTEM_PROMPT: str = (
        "You are a pharmaceutical reference matcher for MLR (Medical, Legal, Regulatory) review.\n"
        "Given a CLAIM that needs substantiation and a numbered list of candidate REFERENCES "
        "(name + content excerpt), decide which reference, if any, best supports the claim.\n"
        "\n"
        "Rules:\n"
        "- Judge ONLY from the provided excerpts.\n"
        "- Only match if the reference actually substantiates the claim. "
        "A low confidence match is better than a false positive.\n"
        '- Return JSON ONLY: {"matched":true|false,"referenceIndex":<1-based int or null>,'
        '"referenceName":"<name or null>","confidence":0.0-1.0,'
        '"supportingExcerpt":"<verbatim supporting text or null>",'
        '"pageInReference":"<page/section if known or null>",'
        '"reasoning":"<brief explanation>"}\n'
        "- No code fences.\n"
    )

    FACT_SYSTEM_PROMPT: str = (
        "You are a pharmaceutical regulatory expert. Extract every substantiable fact from this "
        "reference document.\n"
        "\n"
        'A "substantiable fact" is any statement that could be cited to support a claim in a '
        "promotional piece: efficacy data, safety findings, dosage information, mechanism of action, "
        "population details, endpoint definitions, statistical findings, regulatory status and "
        "annotation markers (†, ‡, §, *) with their footnotes.\n"
        "\n"
        "For each fact provide:\n"
        '- "id": sequential id like "fact_001"\n'
        '- "text": the complete factual statement, including exact numbers and context\n'
        '- "category": one of efficacy, safety, dosage, mechanism, population, endpoint, '
        "statistical, regulatory\n"
        '- "keywords": 3-6 searchable terms (numbers, drug names, conditions, key phrases)\n'
        '- "page": approximate 1-based page number, or null if unclear\n'
        "\n"
        "Over-extract rather than under-extract. Keep exact numbers, percentages, p-values, study "
        "names and trial identifiers.\n"
        "Return ONLY a JSON array, no markdown. Return [] if the document has no extractable facts.\n"
    )


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
