import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI

import config

logger = logging.getLogger(__name__)

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    """Lazily create the shared OpenAI client"""
    global _client
    if _client is None:
        _client = OpenAI(api_key=config.OPENAI_API_KEY, base_url=config.OPENAI_BASE_URL)
    return _client


def invoke_llm(messages: List[Dict[str, str]], json_schema: Dict[str, Any], model: str = None) -> Any:
    """Run a chat completion constrained to json_schema and return the message content"""
    model = model or config.LLM_MODEL
    response = get_client().chat.completions.create(
        model=model,
        messages=messages,
        response_format={
            "type": "json_schema",
            "json_schema": json_schema
        },
        temperature=0.2
    )

    if not response.choices:
        return None

    usage = getattr(response, 'usage', None)
    if usage is not None:
        logger.debug("LLM %s used %s tokens", model, usage.total_tokens)

    return response.choices[0].message.content
