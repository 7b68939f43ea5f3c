from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response, StreamingResponse
from fastapi.templating import Jinja2Templates
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pathlib import Path
from typing import AsyncIterator, Callable, Optional
import asyncio
import json
import logging

import uvicorn

# Local imports
from .schemas import ClassificationRequest, ComplianceRequest, ErrorResponse, SampleExtraction, TabsResponse
from .settings import MissingCredentialError, Settings, require_api_key, settings as app_settings
from .logging_setup import setup_logging
from .metrics import REQS
from .renderer import GenerateFn
from .tabular import TabularParseError
from .view import ClassifierInputs, ComplianceInputs, Mode, Workbench
from .llm.openai_stream import get_stream_callable

logger = logging.getLogger(__name__)

TEMPLATES = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

FATAL_HTML = (
    "<!DOCTYPE html><html><head><title>Data Governance Workbench</title></head>"
    '<body><div class="error">Missing API Key!</div></body></html>'
)


def get_workbench(request: Request) -> Workbench:
    return request.app.state.workbench


def _sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


async def _relay(queue: asyncio.Queue, task: Optional[asyncio.Task], wb: Workbench, mode: Mode) -> AsyncIterator[str]:
    """Forward surface/control events for one action until its stream task settles.

    A superseded (cancelled) task ends the relay at once: anything still
    queued was published by the request that replaced it.
    """
    getter: Optional[asyncio.Future] = None
    superseded = False
    try:
        if task is not None:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if task.cancelled():
                    superseded = True
                    break
                if getter in done:
                    yield _sse(*getter.result())
                    continue
                break

        # Whatever was published before the task settled (or the validation error)
        while not superseded and not queue.empty():
            yield _sse(*queue.get_nowait())
        yield _sse("done", {"superseded": superseded})
    finally:
        if getter is not None and not getter.done():
            getter.cancel()
        wb.surfaces[mode].unsubscribe(queue)
        wb.controls[mode].unsubscribe(queue)


def _stream_action(wb: Workbench, mode: Mode, start: Callable[[], Optional[asyncio.Task]]) -> StreamingResponse:
    queue: asyncio.Queue = asyncio.Queue()
    wb.surfaces[mode].subscribe(queue)
    wb.controls[mode].subscribe(queue)
    task = start()
    if task is None:
        logger.info("%s request rejected by input checks", mode.value)
    return StreamingResponse(_relay(queue, task, wb, mode), media_type="text/event-stream")


def _install_fatal_routes(app: FastAPI) -> None:
    """Without a model credential the whole UI is replaced by a static error page."""

    @app.get("/health")
    def health():
        return JSONResponse(status_code=503, content={"ok": False, "reason": "missing_api_key"})

    @app.api_route("/{path:path}", methods=["GET", "POST"])
    def fatal(path: str):
        return HTMLResponse(FATAL_HTML, status_code=500)


def create_app(cfg: Settings = app_settings, generate: Optional[GenerateFn] = None) -> FastAPI:
    setup_logging(level=cfg.log_level, json_logs=cfg.log_json)

    # FastAPI app
    app = FastAPI(title="Data Governance Workbench")

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    try:
        require_api_key(cfg)
    except MissingCredentialError:
        logger.error("LLM_API_KEY is not configured; serving the configuration error page only")
        _install_fatal_routes(app)
        return app

    app.state.workbench = Workbench(
        generate or get_stream_callable(cfg),
        preview_rows=cfg.sample_preview_rows,
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request, wb: Workbench = Depends(get_workbench)):
        REQS.labels("/").inc()
        return TEMPLATES.TemplateResponse(
            request,
            "index.html",
            {
                "modes": list(Mode),
                "tabs": wb.tab_state(),
                "compliance": wb.compliance,
                "classifier": wb.classifier,
                "surfaces": {m.value: s.html for m, s in wb.surfaces.items()},
                "controls": {m.value: c.disabled for m, c in wb.controls.items()},
            },
        )

    @app.post("/api/tabs/{mode}", response_model=TabsResponse)
    def switch_tab(mode: Mode, wb: Workbench = Depends(get_workbench)):
        REQS.labels("/api/tabs").inc()
        return TabsResponse(mode=mode.value, tabs=wb.switch_tab(mode))

    @app.post("/api/compliance/stream")
    async def compliance_stream(req: ComplianceRequest, wb: Workbench = Depends(get_workbench)):
        REQS.labels("/api/compliance/stream").inc()
        inputs = ComplianceInputs(schema=req.schema_text, query=req.query)
        return _stream_action(wb, Mode.COMPLIANCE, lambda: wb.check_compliance(inputs))

    @app.post("/api/classifier/stream")
    async def classifier_stream(req: ClassificationRequest, wb: Workbench = Depends(get_workbench)):
        REQS.labels("/api/classifier/stream").inc()
        inputs = ClassifierInputs(schema=req.schema_text, sample=req.sample)
        return _stream_action(wb, Mode.CLASSIFIER, lambda: wb.classify(inputs))

    @app.post(
        "/api/classifier/sample",
        response_model=SampleExtraction,
        responses={422: {"model": ErrorResponse}},
    )
    async def classifier_sample(file: UploadFile = File(...), wb: Workbench = Depends(get_workbench)):
        REQS.labels("/api/classifier/sample").inc()
        data = await file.read()
        try:
            return wb.load_sample(file.filename or "upload", data)
        except TabularParseError as e:
            err = ErrorResponse(error="parse_error", reason=f"Error parsing file: {e}")
            return JSONResponse(status_code=422, content=err.model_dump())

    return app


app = create_app()


def run() -> None:
    """Serve the workbench with uvicorn (`governance-workbench` console script)."""
    uvicorn.run(app, host=app_settings.host, port=app_settings.port, log_level=app_settings.log_level.lower())


if __name__ == "__main__":
    run()
