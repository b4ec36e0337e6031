"""
CineChat — LLM Client (LangChain + OpenAI)

Factory + Adapter pattern: wraps LangChain's ChatOpenAI so every agent
talks to the chat-completion endpoint through one small function.

Design patterns used:
  - Factory: create_llm() builds configured ChatOpenAI instances
  - Adapter: chat_completion() adapts LangChain to dict-based messages
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from cinechat.config import settings

logger = logging.getLogger(__name__)

# ── LLM Factory ──────────────────────────────────────────


def create_llm(
    *,
    temperature: float = 0.2,
    max_tokens: int = 1024,
    model: Optional[str] = None,
) -> ChatOpenAI:
    """
    Factory: create a ChatOpenAI instance for one call site.
    Retries are disabled; every remote call is attempted exactly once.
    """
    return ChatOpenAI(
        model=model or settings.openai_model,
        openai_api_key=settings.openai_api_key,
        openai_api_base=settings.openai_base_url,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=0,
    )


# ── Message conversion helper ─────────────────────────────


def _to_langchain_messages(messages: List[Dict[str, str]]) -> list:
    """Convert our dict-based messages to LangChain message objects."""
    lc_msgs = []
    for msg in messages:
        role = msg["role"]
        content = msg["content"]
        if role == "system":
            lc_msgs.append(SystemMessage(content=content))
        elif role == "assistant":
            lc_msgs.append(AIMessage(content=content))
        else:
            lc_msgs.append(HumanMessage(content=content))
    return lc_msgs


# ── Core chat completion ──────────────────────────────────


async def chat_completion(
    messages: List[Dict[str, str]],
    *,
    temperature: float = 0.2,
    max_tokens: int = 1024,
    model: Optional[str] = None,
) -> str:
    """Send a chat completion request and return the stripped text content."""
    llm = create_llm(temperature=temperature, max_tokens=max_tokens, model=model)
    lc_messages = _to_langchain_messages(messages)

    logger.debug(
        "LLM request: model=%s tokens=%d temp=%.1f",
        model or settings.openai_model, max_tokens, temperature,
    )

    response = await llm.ainvoke(lc_messages)
    content = str(response.content).strip()

    logger.info("LLM response: %d chars, first 100: %s", len(content), repr(content[:100]))
    return content
