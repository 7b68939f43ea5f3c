"""
Streaming response renderer.

Owns the busy / error / idle lifecycle of one feature request:
1. Disable the trigger control and show the loading indicator.
2. Open the model stream (suspends only at the network boundary).
3. Append every fragment to a local accumulator and re-render the *whole*
   accumulated text as markdown into the result surface.
4. On failure, replace the surface with an error message. No retry.
5. Re-enable the trigger control on every exit path.

Result surfaces and trigger controls are plain objects passed in explicitly.
Listeners (the SSE relay in `main.py`) subscribe with an asyncio.Queue and
receive ("surface", {"html": ...}) / ("control", {"disabled": ...}) events.

A surface carries a generation counter. Only the newest request for a
surface may write to it; a superseded request stops touching the surface and
leaves the control to the request that replaced it.
"""

from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional
from time import perf_counter
import asyncio
import html
import logging

import markdown

from .metrics import FRAGMENTS, LAT_STREAM, STREAM_ERRS

logger = logging.getLogger(__name__)

LOADING_HTML = '<div class="loading"></div>'
MARKDOWN_EXTENSIONS = ["tables", "fenced_code"]

GenerateFn = Callable[[str], Awaitable[AsyncIterator[str]]]


def render_markdown(text: str) -> str:
    """Render markdown to HTML with a fresh converter per call."""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def error_html(message: str) -> str:
    return f'<div class="error">{html.escape(message)}</div>'


class _Observable:
    event = ""

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[asyncio.Queue] = []

    def subscribe(self, queue: asyncio.Queue) -> None:
        self._listeners.append(queue)

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._listeners:
            self._listeners.remove(queue)

    def _publish(self, payload: Dict[str, Any]) -> None:
        for q in list(self._listeners):
            q.put_nowait((self.event, payload))


class ResultSurface(_Observable):
    """Display region for one feature's rendered output."""

    event = "surface"

    def __init__(self, name: str):
        super().__init__(name)
        self.html = ""
        self.generation = 0

    def replace(self, content: str) -> None:
        self.html = content
        self._publish({"html": content})

    def begin(self) -> int:
        """Claim the surface for a new request and return its generation."""
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation


class TriggerControl(_Observable):
    """The button that starts a feature's request."""

    event = "control"

    def __init__(self, name: str):
        super().__init__(name)
        self.disabled = False

    def disable(self) -> None:
        self.disabled = True
        self._publish({"disabled": True})

    def enable(self) -> None:
        self.disabled = False
        self._publish({"disabled": False})


async def stream_response(
    prompt: str,
    surface: ResultSurface,
    control: TriggerControl,
    generate: GenerateFn,
    generation: Optional[int] = None,
) -> None:
    """Stream the model's answer to `prompt` into `surface` while `control` is disabled."""
    if generation is None:
        generation = surface.begin()
    feature = surface.name
    if not surface.is_current(generation):
        logger.debug("Request for %s superseded before it started", feature)
        return

    control.disable()
    surface.replace(LOADING_HTML)
    t0 = perf_counter()

    try:
        stream = await generate(prompt)
        if surface.is_current(generation):
            surface.replace("")

        full_response = ""
        async for fragment in stream:
            if not surface.is_current(generation):
                logger.debug("Superseded stream for %s, dropping remaining fragments", feature)
                break
            full_response += fragment
            FRAGMENTS.labels(feature).inc()
            surface.replace(render_markdown(full_response))

        logger.info("Stream for %s finished (%d chars)", feature, len(full_response))

    except asyncio.CancelledError:
        logger.info("Stream for %s cancelled", feature)
        raise

    except Exception as e:
        STREAM_ERRS.labels(feature).inc()
        logger.exception("Stream for %s failed", feature)
        if surface.is_current(generation):
            surface.replace(error_html(f"An error occurred: {str(e) or type(e).__name__}"))

    finally:
        LAT_STREAM.labels(feature).observe((perf_counter() - t0) * 1000)
        if surface.is_current(generation):
            control.enable()
