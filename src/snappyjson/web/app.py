"""FastAPI application exposing the SnappyJSON command set."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from snappyjson import commands
from snappyjson.errors import (
    DocumentParseError,
    EmptyQueryError,
    InvalidEditError,
    InvalidPointerError,
    LastFileError,
    NoDocumentError,
    ParseCanceledError,
    SnappyError,
    SourceError,
)
from snappyjson.models import Node, SearchResponse
from snappyjson.state import AppState

LOGGER = logging.getLogger(__name__)

STATE = AppState()

app = FastAPI(title="SnappyJSON", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class OpenFilePayload(BaseModel):
    path: str


class ChildrenPayload(BaseModel):
    pointer: str = ""
    offset: int = 0
    limit: int = 100


class SearchFlagsPayload(BaseModel):
    query: str
    search_keys: bool = True
    search_values: bool = True
    search_paths: bool = False
    case_sensitive: bool = False
    regex: bool = False
    whole_word: bool = False


class SearchPayload(SearchFlagsPayload):
    offset: int = 0
    limit: int = 50


class PointerPayload(BaseModel):
    pointer: str = ""


class SetValuePayload(BaseModel):
    pointer: str = ""
    new_value: str


class SetSubtreePayload(BaseModel):
    pointer: str = ""
    new_json: str


class LastFilePayload(BaseModel):
    file_path: str


def _status_for(exc: SnappyError) -> int:
    if isinstance(exc, ParseCanceledError):
        return 409
    if isinstance(exc, DocumentParseError):
        return 422
    if isinstance(exc, NoDocumentError):
        return 409
    if isinstance(exc, (InvalidPointerError, LastFileError)):
        return 404
    if isinstance(exc, (EmptyQueryError, InvalidEditError)):
        return 400
    if isinstance(exc, SourceError) and isinstance(exc.__cause__, FileNotFoundError):
        return 404
    return 500


@app.exception_handler(SnappyError)
async def snappy_error_handler(request: Request, exc: SnappyError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        LOGGER.error("%s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    STATE.close()


@app.post("/open_file")
async def open_file(payload: OpenFilePayload) -> List[Node]:
    return await asyncio.wrap_future(commands.open_file_async(STATE, payload.path))


@app.post("/open_clipboard")
async def open_clipboard() -> List[Node]:
    return await asyncio.to_thread(commands.open_clipboard, STATE)


@app.post("/cancel_parse")
async def cancel_parse() -> dict[str, str]:
    commands.cancel_parse(STATE)
    return {"status": "ok"}


@app.post("/load_children")
async def load_children(payload: ChildrenPayload) -> List[Node]:
    return await asyncio.to_thread(
        commands.load_children, STATE, payload.pointer, payload.offset, payload.limit
    )


@app.post("/search")
async def search(payload: SearchPayload) -> SearchResponse:
    future = commands.search_async(STATE, **payload.model_dump())
    return await asyncio.wrap_future(future)


@app.post("/search_stream")
async def search_stream(payload: SearchFlagsPayload) -> dict[str, int]:
    search_id = await asyncio.to_thread(commands.search_stream, STATE, **payload.model_dump())
    return {"id": search_id}


@app.post("/get_node_value")
async def get_node_value(payload: PointerPayload) -> dict[str, str]:
    value = await asyncio.to_thread(commands.get_node_value, STATE, payload.pointer)
    return {"value": value}


@app.post("/copy_node_value")
async def copy_node_value(payload: PointerPayload) -> dict[str, str]:
    await asyncio.to_thread(commands.copy_node_value, STATE, payload.pointer)
    return {"status": "ok"}


@app.post("/set_node_value")
async def set_node_value(payload: SetValuePayload) -> Node:
    return await asyncio.to_thread(
        commands.set_node_value, STATE, payload.pointer, payload.new_value
    )


@app.post("/set_subtree")
async def set_subtree(payload: SetSubtreePayload) -> Node:
    return await asyncio.to_thread(commands.set_subtree, STATE, payload.pointer, payload.new_json)


@app.post("/parse_stringified_json")
async def parse_stringified_json(payload: PointerPayload) -> Node:
    return await asyncio.to_thread(commands.parse_stringified_json, STATE, payload.pointer)


@app.post("/last_opened_file")
async def save_last_opened_file(payload: LastFilePayload) -> dict[str, str]:
    await asyncio.to_thread(commands.save_last_opened_file, STATE, payload.file_path)
    return {"status": "ok"}


@app.get("/last_opened_file")
async def load_last_opened_file() -> dict[str, str]:
    path = await asyncio.to_thread(commands.load_last_opened_file, STATE)
    return {"path": path}


@app.delete("/last_opened_file")
async def clear_last_opened_file() -> dict[str, str]:
    await asyncio.to_thread(commands.clear_last_opened_file, STATE)
    return {"status": "ok"}


@app.post("/open_file_dialog")
async def open_file_dialog() -> dict[str, Any]:
    path = await asyncio.to_thread(commands.open_file_dialog, STATE)
    return {"path": path}


def format_sse(name: str, payload: dict[str, Any]) -> str:
    return f"event: {name}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


@app.get("/events")
async def stream_events(request: Request) -> StreamingResponse:
    """Server-sent events: parse_progress, search_batch and search_done."""
    subscription = STATE.events.subscribe()

    async def event_source():
        try:
            while not await request.is_disconnected():
                event = await asyncio.to_thread(subscription.get, 0.5)
                if event is not None:
                    yield format_sse(event.name, event.payload)
        finally:
            subscription.close()

    return StreamingResponse(event_source(), media_type="text/event-stream")
