# api.py
# HTTP surface for the orchestrator.
#
# Handlers are plain `def` so FastAPI runs each request in its worker thread
# pool; a request's plan runs sequentially inside that thread.

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from plan_runner import display, tools
from plan_runner.catalog import find_movie
from plan_runner.completion import ServiceError
from plan_runner.config import Settings
from plan_runner.harness import Orchestrator, PlanParseError, SynthesisError

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


@router.post("/execute")
def execute(request: Request, payload: Any = Body(default=None)):
    """
    Plan, execute and summarize a free-text request.

    The body is read loosely so that a missing body, a missing or blank
    `userQuery`, or a non-string one all get the same 400.
    """
    user_query = payload.get("userQuery") if isinstance(payload, dict) else None
    query = user_query.strip() if isinstance(user_query, str) else ""
    if not query:
        return JSONResponse(status_code=400, content={"error": "User query is required"})

    try:
        result = _orchestrator(request).run(query)
    except SynthesisError as exc:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to execute plan",
                "details": str(exc),
                "execution_steps": [step.model_dump(mode="json") for step in exc.steps],
            },
        )
    except (PlanParseError, ServiceError) as exc:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to execute plan", "details": str(exc)},
        )
    except Exception as exc:
        display.halt(f"Unexpected error: {exc!r}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to execute plan", "details": str(exc) or type(exc).__name__},
        )

    return {
        "success": True,
        "user_query": result.user_query,
        "execution_steps": [step.model_dump(mode="json") for step in result.steps],
        "status": result.status.value,
        "final_result": result.final_message,
        "timestamp": _now(),
    }


@router.get("/tools")
def list_tools():
    return {"tools": tools.list_tools()}


@router.get("/watchlist")
def watchlist(request: Request):
    store = _orchestrator(request).store
    with store.lock:
        ids = store.watchlist_ids()
    movies = [find_movie(movie_id) for movie_id in ids]
    return {"watchlist": [movie.model_dump() for movie in movies if movie is not None]}


@router.get("/leave")
def leave(request: Request):
    balance = _orchestrator(request).store.leave
    return {"taken": balance.taken, "remaining": balance.remaining, "total": balance.total}


@router.get("/health")
def health(request: Request):
    settings: Settings = request.app.state.settings
    return {
        "status": "ok",
        "completion_configured": settings.completion_configured,
        "planner_model": settings.planner_model,
        "synthesis_model": settings.synthesis_model,
        "timestamp": _now(),
    }


def create_app(orchestrator: Orchestrator, settings: Settings) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Plan Runner API",
        description="Plan, execute and summarize tool calls from free-text requests",
        version="0.1.0",
    )
    app.state.orchestrator = orchestrator
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app
