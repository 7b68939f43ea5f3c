"""
Streaming LLM integration using an OpenAI-compatible API.

The model service is used through a single operation, "generate content
stream": given a prompt, return an async iterator of text fragments in
arrival order. By default the client targets Gemini's OpenAI-compatible
endpoint; point `llm_base_url` / `llm_model` in `governance_app/settings.py`
at any other OpenAI-compatible server.
"""

from typing import AsyncIterator, Awaitable, Callable, Optional
import logging

from openai import AsyncOpenAI

from governance_app.settings import Settings, settings as set, require_api_key

logger = logging.getLogger(__name__)

StreamFn = Callable[[str], Awaitable[AsyncIterator[str]]]


def _create_client(cfg: Settings = set) -> AsyncOpenAI:
    # Construct an async client for the configured OpenAI-compatible endpoint
    return AsyncOpenAI(
        api_key=require_api_key(cfg),
        base_url=cfg.llm_base_url,
        timeout=cfg.llm_timeout,
    )


async def _fragments(stream) -> AsyncIterator[str]:
    async for chunk in stream:
        if not chunk.choices:
            continue
        text = chunk.choices[0].delta.content
        if text:
            yield text


def get_stream_callable(
    cfg: Settings = set,
    model: Optional[str] = None,
    client: Optional[AsyncOpenAI] = None,
) -> StreamFn:
    """
    Return an async callable generate(prompt) -> AsyncIterator[str].
    Usage:
        generate = get_stream_callable()
        async for fragment in await generate(prompt):
            ...
    Opening the stream may raise (auth, network); iterating it may raise too.
    """
    client = client or _create_client(cfg)
    chosen_model = model or cfg.llm_model

    async def generate(prompt: str) -> AsyncIterator[str]:
        logger.debug("Opening stream model=%s prompt_chars=%d", chosen_model, len(prompt))
        stream = await client.chat.completions.create(
            model=chosen_model,
            messages=[{"role": "user", "content": prompt}],
            stream=True,
        )
        return _fragments(stream)

    return generate
