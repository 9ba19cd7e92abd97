"""Async OpenAI client for the scan flows, returning parsed JSON objects."""

import asyncio
import json
import logging
import time

from openai import AsyncOpenAI
from scanwise import settings

logger = logging.getLogger(__name__)

_client = None


def get_client():
    global _client
    if _client is None and settings.OPENAI_API_KEY:
        _client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    return _client


async def complete_json(system_message: str, user_content, *, model: str, label: str) -> dict | None:
    """Run one chat completion in JSON mode and return the decoded object.

    Returns None when the model produced no content. Raises on a missing
    client, transport errors, timeouts and malformed JSON; the action layer
    turns those into error envelopes.
    """
    client = get_client()
    if client is None:
        raise RuntimeError("OpenAI client not configured (set OPENAI_API_KEY)")

    t0 = time.perf_counter()
    try:
        resp = await asyncio.wait_for(
            client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": user_content},
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
            ),
            timeout=settings.REQUEST_TIMEOUT_S,
        )
    except asyncio.TimeoutError:
        logger.warning("%s call timed out after %.0fs", label, settings.REQUEST_TIMEOUT_S)
        raise TimeoutError(f"request timed out after {settings.REQUEST_TIMEOUT_S:.0f}s")

    llm_ms = (time.perf_counter() - t0) * 1000
    content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
    logger.info("%s latency=%.0fms  chars=%d", label, llm_ms, len(content))
    if not content:
        return None
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"model returned malformed JSON ({e.msg})") from e
    if not isinstance(payload, dict):
        raise ValueError("model returned a non-object JSON value")
    return payload
