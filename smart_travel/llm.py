# smart_travel/llm.py
import os
import json
import logging
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRAVEL_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# Load .env file if present
load_dotenv()

DEFAULT_MODEL = os.getenv("TRAVEL_PLANNER_MODEL", "gpt-4o-mini")

# Get API key from environment
api_key = os.getenv("OPENAI_API_KEY")
if api_key:
    _client = OpenAI(api_key=api_key)
else:  # pragma: no cover - exercised indirectly in tests without API key
    _client = None
    logger.warning("OPENAI_API_KEY not set; completion requests will fail until it is configured")

SYSTEM_PROMPT = """You are an expert travel planner.
Answer ONLY with a JSON document that matches the requested schema.
Do not add commentary, markdown fences or extra keys.
"""


class GenerationError(RuntimeError):
    """The completion service failed or returned something unusable."""


def _response_format(schema_name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": schema_name, "schema": schema, "strict": True},
    }


def call_llm_json(
    prompt: str,
    *,
    schema_name: str,
    schema: Dict[str, Any],
    temperature: float,
    model: Optional[str] = None,
) -> Dict[str, Any]:
    """Send ``prompt`` with a strict response schema and return the parsed JSON object.

    Every failure mode (transport, API error, empty or non-JSON content, a JSON
    value that is not an object) surfaces as ``GenerationError`` so callers
    only have a single error kind to handle.
    """
    if _client is None:
        raise GenerationError("Completion service is not configured (OPENAI_API_KEY missing)")

    model = model or DEFAULT_MODEL
    logger.info(
        "Invoking LLM model %s for %s (temperature=%.2f)", model, schema_name, temperature
    )
    try:
        resp = _client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            response_format=_response_format(schema_name, schema),
        )
    except OpenAIError as exc:
        logger.warning("Completion request for %s failed: %s", schema_name, exc)
        raise GenerationError(f"Completion request failed: {exc}") from exc

    raw = resp.choices[0].message.content if resp.choices else None
    if not raw or not raw.strip():
        raise GenerationError("Empty response from completion service")

    try:
        parsed = json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        logger.warning("LLM response for %s was not valid JSON", schema_name)
        raise GenerationError("Invalid JSON from model") from exc

    if not isinstance(parsed, dict):
        raise GenerationError("Invalid data structure")

    logger.info("LLM JSON payload parsed successfully with keys: %s", ", ".join(sorted(parsed.keys())))
    return parsed
