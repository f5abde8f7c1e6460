"""
diagram-events Backend - FastAPI Application

It provides:
- REST API for converting diagram text into graph events
- Diagram building and event-stream validation
- CORS configuration for local frontend development
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from diagram_events import config
from diagram_events.assembler import BatchMode
from diagram_events.builder import build_diagram
from diagram_events.errors import DiagramError, DiagramSyntaxError
from diagram_events.events import events_to_json
from diagram_events.models import Diagram, ParseRequest
from diagram_events.pipeline import assemble_diagram
from diagram_events.productions import DiagramFormat
from diagram_events.validation import validate_events, validation_summary

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


# --- FastAPI App ---

app = FastAPI(
    title="diagram-events API",
    description="Convert DOT and sequence diagram text into graph events",
    version="1.0.0",
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Most recently built diagram, served by GET /api/diagram
_current_diagram: Optional[Diagram] = None


def _assemble(request: ParseRequest):
    """Run the pipeline, mapping diagram errors to HTTP errors."""
    try:
        if request.format is not None:
            DiagramFormat(request.format)
        if request.batch_mode is not None:
            BatchMode(request.batch_mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "E_INPUT", "error": str(e)})

    try:
        return assemble_diagram(request.text, request.format, batch_mode=request.batch_mode)
    except DiagramSyntaxError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())
    except DiagramError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/formats")
async def list_formats():
    """Supported diagram formats and batch modes."""
    return {
        "formats": [f.value for f in DiagramFormat],
        "batch_modes": [m.value for m in BatchMode],
        "default_batch_mode": config.BATCH_MODE,
    }


# --- Parsing ---

@app.post("/api/parse")
async def parse(request: ParseRequest):
    """Convert diagram text into an event list."""
    ctx = _assemble(request)
    logger.debug("Parsed %s diagram into %d events", ctx.format.value, len(ctx.events))
    return {
        "success": True,
        "format": ctx.format.value,
        "events": events_to_json(ctx.events),
    }


@app.post("/api/diagram")
async def build(request: ParseRequest):
    """Convert diagram text into a built diagram plus a validation report."""
    global _current_diagram

    ctx = _assemble(request)
    diagram = build_diagram(ctx.events, name=request.name or "Untitled Diagram", fmt=ctx.format.value)
    issues = validate_events(ctx.events)
    _current_diagram = diagram
    return {
        "success": True,
        "diagram": diagram.to_json_dict(),
        "validation": {
            "summary": validation_summary(issues),
            "issues": [issue.to_dict() for issue in issues],
        },
    }


@app.get("/api/diagram")
async def get_diagram():
    """Get the most recently built diagram."""
    if _current_diagram is None:
        raise HTTPException(status_code=404, detail="No diagram built yet")
    return _current_diagram.to_json_dict()


# --- Run with uvicorn ---

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
