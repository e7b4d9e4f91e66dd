# tools.py
# Tool registry: all callable implementations.
#
# Every tool is a ToolName member with one ToolDefinition. Raw arguments from
# the plan are normalized through the tool's pydantic model before the handler
# sees them: missing or null fields take the declared defaults, unknown fields
# are dropped. The executor only ever calls invoke().

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ValidationError, field_validator

from plan_runner.catalog import MOVIES, find_movie
from plan_runner.store import StateStore


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnknownToolError(Exception):
    """Raised when a step names a tool absent from the registry."""


class ToolExecutionError(Exception):
    """Raised when a tool's arguments cannot be normalized or its handler fails."""


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class NoArgs(BaseModel):
    pass


class SearchArgs(BaseModel):
    query: str = ""
    limit: int = 10

    @field_validator("query", mode="before")
    @classmethod
    def _query(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value: Any) -> Any:
        return 10 if value is None else value

    @field_validator("limit")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        return value if value > 0 else 10


class MovieArgs(BaseModel):
    movie_id: str = ""

    @field_validator("movie_id", mode="before")
    @classmethod
    def _movie_id(cls, value: Any) -> Any:
        return "" if value is None else value


class RecommendArgs(BaseModel):
    genre: str | None = None
    limit: int = 5

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value: Any) -> Any:
        return 5 if value is None else value

    @field_validator("limit")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        return value if value > 0 else 5


class LeaveArgs(BaseModel):
    days: int = 0

    @field_validator("days", mode="before")
    @classmethod
    def _days(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("days")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


def _tool_search_movies(args: SearchArgs, store: StateStore) -> dict:
    matches = [movie for movie in MOVIES if movie.matches(args.query)]
    return {
        "success": True,
        "results": [movie.model_dump() for movie in matches[: args.limit]],
        "total": len(matches),
    }


def _tool_add_to_watchlist(args: MovieArgs, store: StateStore) -> dict:
    movie = find_movie(args.movie_id)
    if movie is None:
        raise LookupError(f"Movie not found: {args.movie_id or '<missing movie_id>'}")
    store.add_to_watchlist(movie.id)
    return {
        "success": True,
        "movie": movie.title,
        "action": "added_to_watchlist",
        "watchlist_count": len(store.watchlist_ids()),
    }


def _tool_remove_from_watchlist(args: MovieArgs, store: StateStore) -> dict:
    removed = store.remove_from_watchlist(args.movie_id)
    return {
        "success": True,
        "action": "removed_from_watchlist",
        "removed": removed,
        "watchlist_count": len(store.watchlist_ids()),
    }


def _tool_get_watchlist(args: NoArgs, store: StateStore) -> dict:
    movies = [find_movie(movie_id) for movie_id in store.watchlist_ids()]
    watchlist = [movie.model_dump() for movie in movies if movie is not None]
    return {"success": True, "watchlist": watchlist, "count": len(watchlist)}


def _tool_get_recommendations(args: RecommendArgs, store: StateStore) -> dict:
    genre = args.genre.lower() if args.genre else None
    watched = set(store.watchlist_ids())

    candidates = [movie for movie in MOVIES if not genre or genre in movie.genre.lower()]
    candidates = [movie for movie in candidates if movie.id not in watched]
    candidates.sort(key=lambda movie: movie.rating, reverse=True)

    return {
        "success": True,
        "recommendations": [movie.model_dump() for movie in candidates[: args.limit]],
        "based_on": f"genre: {genre}" if genre else "popular movies",
    }


def _tool_calculate_leave(args: LeaveArgs, store: StateStore) -> dict:
    applied = store.take_leave(args.days)
    balance = store.leave
    if args.days > 0:
        message = f"After taking {applied} days, you have {balance.remaining} days remaining"
        if applied < args.days:
            message += f" (requested {args.days}, only {applied} were available)"
    else:
        message = f"You have {balance.remaining} days remaining out of {balance.total} total"
    return {
        "success": True,
        "requested": args.days,
        "applied": applied,
        "taken": balance.taken,
        "remaining": balance.remaining,
        "message": message,
    }


def _tool_get_leave_balance(args: NoArgs, store: StateStore) -> dict:
    balance = store.leave
    return {
        "success": True,
        "taken": balance.taken,
        "remaining": balance.remaining,
        "total": balance.total,
    }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolName(str, Enum):
    SEARCH_MOVIES = "searchMovies"
    ADD_TO_WATCHLIST = "addToWatchlist"
    REMOVE_FROM_WATCHLIST = "removeFromWatchlist"
    GET_WATCHLIST = "getWatchlist"
    GET_RECOMMENDATIONS = "getRecommendations"
    CALCULATE_LEAVE = "calculateLeave"
    GET_LEAVE_BALANCE = "getLeaveBalance"


@dataclass(frozen=True)
class ToolDefinition:
    name: ToolName
    description: str
    signature: str
    args_model: type[BaseModel]
    handler: Callable[[Any, StateStore], dict]


TOOLS: dict[ToolName, ToolDefinition] = {
    tool.name: tool
    for tool in (
        ToolDefinition(
            ToolName.SEARCH_MOVIES,
            "Search movies by title, genre, director, or actor",
            'searchMovies({"query": "<string>", "limit": <number>})',
            SearchArgs,
            _tool_search_movies,
        ),
        ToolDefinition(
            ToolName.ADD_TO_WATCHLIST,
            "Add a movie to your personal watchlist",
            'addToWatchlist({"movie_id": "<string>"})',
            MovieArgs,
            _tool_add_to_watchlist,
        ),
        ToolDefinition(
            ToolName.REMOVE_FROM_WATCHLIST,
            "Remove a movie from your watchlist",
            'removeFromWatchlist({"movie_id": "<string>"})',
            MovieArgs,
            _tool_remove_from_watchlist,
        ),
        ToolDefinition(
            ToolName.GET_WATCHLIST,
            "Get your current watchlist",
            "getWatchlist({})",
            NoArgs,
            _tool_get_watchlist,
        ),
        ToolDefinition(
            ToolName.GET_RECOMMENDATIONS,
            "Get movie recommendations based on genre",
            'getRecommendations({"genre": "<string>", "limit": <number>})',
            RecommendArgs,
            _tool_get_recommendations,
        ),
        ToolDefinition(
            ToolName.CALCULATE_LEAVE,
            "Calculate remaining leave days after taking time off",
            'calculateLeave({"days": <number>})',
            LeaveArgs,
            _tool_calculate_leave,
        ),
        ToolDefinition(
            ToolName.GET_LEAVE_BALANCE,
            "Check your current leave balance",
            "getLeaveBalance({})",
            NoArgs,
            _tool_get_leave_balance,
        ),
    )
}

def check_registry(registry: dict[ToolName, ToolDefinition]) -> None:
    """Fail loudly at import time if any ToolName has no definition."""
    missing = [name.value for name in ToolName if name not in registry]
    if missing:
        raise RuntimeError(f"Tools without a definition: {missing}")


check_registry(TOOLS)


def resolve(name: str) -> ToolDefinition:
    try:
        return TOOLS[ToolName(name)]
    except ValueError as exc:
        raise UnknownToolError(f"Unknown tool: {name or '<missing>'}") from exc


def invoke(name: str, args: Any, store: StateStore) -> dict:
    """
    Normalize `args` for the named tool and run it against `store`.

    Raises UnknownToolError for unregistered names and ToolExecutionError for
    anything that goes wrong after that.
    """
    tool = resolve(name)

    try:
        normalized = tool.args_model.model_validate({} if args is None else args)
    except ValidationError as exc:
        raise ToolExecutionError(f"Invalid arguments for {tool.name.value}: {exc}") from exc

    with store.lock:
        try:
            return tool.handler(normalized, store)
        except Exception as exc:
            raise ToolExecutionError(str(exc) or type(exc).__name__) from exc


def describe_for_prompt() -> str:
    """One line per tool: call signature and description, for the planner prompt."""
    return "\n".join(f"- {tool.signature} - {tool.description}" for tool in TOOLS.values())


def list_tools() -> list[dict[str, str]]:
    return [{"name": tool.name.value, "description": tool.description} for tool in TOOLS.values()]
