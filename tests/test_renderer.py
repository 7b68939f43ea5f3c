import asyncio

import pytest

from governance_app.renderer import (
    LOADING_HTML,
    ResultSurface,
    TriggerControl,
    error_html,
    render_markdown,
    stream_response,
)


def _drain(queue: asyncio.Queue):
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


@pytest.mark.asyncio
async def test_fragments_render_as_whole_text(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("check-compliance")
    model = fake_model(["Hel", "lo"])

    await stream_response("say hello", surface, control, model)

    assert model.prompts == ["say hello"]
    assert surface.html == render_markdown("Hello")
    assert control.disabled is False


@pytest.mark.asyncio
async def test_lifecycle_events_in_arrival_order(fake_model):
    surface, control = ResultSurface("classifier"), TriggerControl("classify-data")
    queue: asyncio.Queue = asyncio.Queue()
    surface.subscribe(queue)
    control.subscribe(queue)

    await stream_response("p", surface, control, fake_model(["# Title\n", "body"]))

    assert _drain(queue) == [
        ("control", {"disabled": True}),
        ("surface", {"html": LOADING_HTML}),
        ("surface", {"html": ""}),
        ("surface", {"html": render_markdown("# Title\n")}),
        ("surface", {"html": render_markdown("# Title\nbody")}),
        ("control", {"disabled": False}),
    ]


@pytest.mark.asyncio
async def test_partial_markdown_settles_once_complete(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("btn")
    fragments = ["| Field | Class |\n|---", "|---|\n| email | PII |\n"]

    await stream_response("p", surface, control, fake_model(fragments))

    assert "<table>" in surface.html
    assert "<td>email</td>" in surface.html
    assert surface.html == render_markdown("".join(fragments))


@pytest.mark.asyncio
async def test_failure_after_zero_fragments(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("btn")

    await stream_response("p", surface, control, fake_model([], error=RuntimeError("quota exceeded")))

    assert surface.html == error_html("An error occurred: quota exceeded")
    assert "quota exceeded" in surface.html
    assert control.disabled is False


@pytest.mark.asyncio
async def test_failure_opening_stream(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("btn")

    await stream_response("p", surface, control, fake_model(open_error=ConnectionError("network down")))

    assert surface.html == '<div class="error">An error occurred: network down</div>'
    assert control.disabled is False


@pytest.mark.asyncio
async def test_failure_mid_stream_replaces_partial_output(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("btn")

    await stream_response("p", surface, control, fake_model(["partial"], error=ValueError("bad chunk")))

    assert "partial" not in surface.html
    assert "bad chunk" in surface.html
    assert control.disabled is False


@pytest.mark.asyncio
async def test_error_description_is_escaped(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("btn")

    await stream_response("p", surface, control, fake_model(open_error=RuntimeError("<script>x</script>")))

    assert "<script>" not in surface.html
    assert "&lt;script&gt;" in surface.html


@pytest.mark.asyncio
async def test_stale_generation_leaves_surface_and_control_alone(fake_model):
    surface, control = ResultSurface("compliance"), TriggerControl("btn")
    model = fake_model(["old"])
    generation = surface.begin()
    surface.begin()  # a newer request claimed the surface

    await stream_response("p", surface, control, model, generation=generation)

    assert model.prompts == []
    assert surface.html == ""
    assert control.disabled is False


def test_rendering_is_deterministic():
    text = "## Result\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\n```sql\nSELECT 1;\n```"
    first = render_markdown(text)
    assert first == render_markdown(text)
    assert "<table>" in first
    assert "<code" in first
