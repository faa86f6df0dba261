"""
leadqa/openai_client.py
========================
Shared OpenAI call helper - LeadQA

Wraps ``client.chat.completions.create`` with a single attempt and
leveled logging.  Every external call in LeadQA is made exactly once;
failures are logged and re-raised unchanged.

Usage::

    from leadqa.openai_client import chat_completion

    response = chat_completion(
        client,
        model="gpt-4o-mini",
        messages=[...],
        temperature=0.0,
    )
"""

import logging
from typing import Any

logger = logging.getLogger("leadqa.openai_client")


def chat_completion(client: Any, **kwargs: Any) -> Any:
    """
    Call ``client.chat.completions.create(**kwargs)`` once.

    Raises:
        Whatever the SDK raised; the error is logged first.
    """
    try:
        return client.chat.completions.create(**kwargs)
    except Exception as exc:
        logger.error(
            "OpenAI call failed (%s, status=%s, not retried): %s",
            type(exc).__name__, getattr(exc, "status_code", None), exc,
        )
        raise
