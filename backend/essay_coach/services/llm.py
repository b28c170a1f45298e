# backend/essay_coach/services/llm.py
from __future__ import annotations
import os
from typing import Dict, Any, List
import httpx

PROVIDER = os.getenv("LLM_PROVIDER", "openai").lower()
MODEL = os.getenv("LLM_MODEL", "gpt-4o")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

def _format_messages(system: str, user: str) -> List[Dict[str, str]]:
    msgs: List[Dict[str, str]] = []
    if system:
        msgs.append({"role": "system", "content": system})
    msgs.append({"role": "user", "content": user})
    return msgs

async def chat_json(system: str, prompt: str, max_tokens: int = 2500, temperature: float = 0.3) -> str:
    """
    Returns the raw message content of a JSON-mode chat completion.

    Supports two OpenAI-compatible providers:
    - openai: api.openai.com (or OPENAI_BASE_URL)
    - openrouter: OpenRouter API
    """
    if PROVIDER == "openai":
        if not OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY not configured in environment")
        url = f"{OPENAI_BASE_URL.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {OPENAI_API_KEY}"}
    elif PROVIDER == "openrouter":
        if not OPENROUTER_API_KEY:
            raise RuntimeError("OPENROUTER_API_KEY not configured in environment")
        url = f"{OPENROUTER_BASE_URL}/chat/completions"
        headers = {
            "Authorization": f"Bearer {OPENROUTER_API_KEY}",
            "X-Title": "Essay-Coach",
        }
    else:
        raise RuntimeError(f"LLM_PROVIDER={PROVIDER} not supported. Use 'openai' or 'openrouter'.")

    payload: Dict[str, Any] = {
        "model": MODEL,
        "response_format": {"type": "json_object"},
        "messages": _format_messages(system, prompt),
        "temperature": temperature,
        "max_tokens": max_tokens,
    }

    async with httpx.AsyncClient(timeout=120) as client:
        r = await client.post(url, json=payload, headers=headers)
        r.raise_for_status()
        data = r.json()

    # OpenAI-compatible response format
    content = ((data.get("choices") or [{}])[0].get("message") or {}).get("content") or ""
    if not content.strip():
        raise RuntimeError("Invalid response from AI service")
    return content
