"""
CineChat — General Responder

Plain assistant reply over the whole conversation, used for anything
that isn't a movie or TV recommendation request.
"""

from __future__ import annotations

import logging
from typing import List

from cinechat.clients import chat_completion
from cinechat.models import ConversationMessage

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = "You are a helpful assistant. Respond to the user's message appropriately."

APOLOGY = "Sorry, I couldn't process your request at the moment."


async def respond_general(history: List[ConversationMessage]) -> str:
    messages = [{"role": "system", "content": _SYSTEM_PROMPT}]
    messages.extend({"role": m.role, "content": m.content} for m in history)

    try:
        return await chat_completion(messages, temperature=0.7, max_tokens=1024)
    except Exception as exc:
        logger.error("General response failed: %s", exc)
        return APOLOGY
