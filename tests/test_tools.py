import threading

import pytest

from plan_runner import tools
from plan_runner.store import StateStore
from plan_runner.tools import (
    TOOLS,
    ToolExecutionError,
    ToolName,
    UnknownToolError,
    check_registry,
    describe_for_prompt,
    invoke,
    list_tools,
)


@pytest.fixture
def store():
    return StateStore(annual_leave_days=12)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_every_tool_name_is_registered():
    assert set(TOOLS) == set(ToolName)
    assert [t["name"] for t in list_tools()] == [name.value for name in ToolName]


def test_incomplete_registry_is_rejected():
    partial = {name: tool for name, tool in TOOLS.items() if name is not ToolName.GET_LEAVE_BALANCE}

    with pytest.raises(RuntimeError, match="getLeaveBalance"):
        check_registry(partial)
    check_registry(TOOLS)


def test_list_tools_has_descriptions():
    listed = {t["name"]: t["description"] for t in list_tools()}
    assert listed["searchMovies"] == "Search movies by title, genre, director, or actor"
    assert all(listed.values())


def test_describe_for_prompt_lists_every_signature():
    prompt = describe_for_prompt()
    for tool in TOOLS.values():
        assert tool.signature in prompt


def test_unknown_tool(store):
    with pytest.raises(UnknownToolError, match="Unknown tool: launchRockets"):
        invoke("launchRockets", {}, store)


def test_missing_tool_name(store):
    with pytest.raises(UnknownToolError, match="Unknown tool: <missing>"):
        invoke("", {}, store)


def test_handler_exception_is_wrapped(store, monkeypatch):
    def boom(args, store):
        raise RuntimeError("disk on fire")

    definition = TOOLS[ToolName.GET_WATCHLIST]
    monkeypatch.setitem(
        TOOLS,
        ToolName.GET_WATCHLIST,
        tools.ToolDefinition(
            definition.name, definition.description, definition.signature, definition.args_model, boom
        ),
    )
    with pytest.raises(ToolExecutionError, match="disk on fire"):
        invoke("getWatchlist", {}, store)


def test_unnormalizable_arguments(store):
    with pytest.raises(ToolExecutionError, match="Invalid arguments for calculateLeave"):
        invoke("calculateLeave", {"days": "a fortnight"}, store)


@pytest.mark.parametrize("tool, args", [("getWatchlist", ["m1"]), ("getWatchlist", []), ("addToWatchlist", "m1")])
def test_non_object_arguments_are_execution_errors(store, tool, args):
    with pytest.raises(ToolExecutionError, match=f"Invalid arguments for {tool}"):
        invoke(tool, args, store)
    assert store.watchlist_ids() == []


def test_missing_and_null_arguments_use_defaults(store):
    result = invoke("searchMovies", None, store)
    assert result["total"] == 5

    result = invoke("searchMovies", {"query": None, "limit": None, "extra": "ignored"}, store)
    assert len(result["results"]) == 5


# ---------------------------------------------------------------------------
# Movie tools
# ---------------------------------------------------------------------------

def test_search_matches_title_genre_director_and_cast(store):
    assert [m["id"] for m in invoke("searchMovies", {"query": "inception"}, store)["results"]] == ["m1"]
    assert invoke("searchMovies", {"query": "sci-fi"}, store)["total"] == 2
    assert invoke("searchMovies", {"query": "nolan"}, store)["total"] == 3
    assert [m["id"] for m in invoke("searchMovies", {"query": "emma stone"}, store)["results"]] == ["m4"]


def test_search_limit(store):
    result = invoke("searchMovies", {"query": "nolan", "limit": 1}, store)
    assert len(result["results"]) == 1
    assert result["total"] == 3

    result = invoke("searchMovies", {"query": "nolan", "limit": 0}, store)
    assert len(result["results"]) == 3


def test_add_to_watchlist_is_idempotent(store):
    first = invoke("addToWatchlist", {"movie_id": "m1"}, store)
    second = invoke("addToWatchlist", {"movie_id": "m1"}, store)

    assert first["success"] is True
    assert second["success"] is True
    assert second["movie"] == "Inception"
    assert second["watchlist_count"] == 1
    assert store.watchlist_ids() == ["m1"]


def test_add_unknown_movie_fails(store):
    with pytest.raises(ToolExecutionError, match="Movie not found: m99"):
        invoke("addToWatchlist", {"movie_id": "m99"}, store)
    assert store.watchlist_ids() == []


def test_remove_reports_whether_anything_was_removed(store):
    invoke("addToWatchlist", {"movie_id": "m2"}, store)

    removed = invoke("removeFromWatchlist", {"movie_id": "m2"}, store)
    assert removed["success"] is True
    assert removed["removed"] is True
    assert removed["watchlist_count"] == 0

    again = invoke("removeFromWatchlist", {"movie_id": "m2"}, store)
    assert again["success"] is True
    assert again["removed"] is False


def test_get_watchlist_preserves_insertion_order(store):
    for movie_id in ("m3", "m1", "m5", "m1"):
        invoke("addToWatchlist", {"movie_id": movie_id}, store)

    result = invoke("getWatchlist", {}, store)
    assert [m["id"] for m in result["watchlist"]] == ["m3", "m1", "m5"]
    assert result["count"] == 3


def test_recommendations_sorted_by_rating_excluding_watchlist(store):
    invoke("addToWatchlist", {"movie_id": "m3"}, store)

    result = invoke("getRecommendations", {"limit": 3}, store)
    assert [m["id"] for m in result["recommendations"]] == ["m1", "m2", "m4"]
    assert result["based_on"] == "popular movies"

    result = invoke("getRecommendations", {"genre": "Sci-Fi"}, store)
    assert [m["id"] for m in result["recommendations"]] == ["m1", "m2"]
    assert result["based_on"] == "genre: sci-fi"


def test_read_only_tools_do_not_mutate(store):
    invoke("searchMovies", {"query": "a"}, store)
    invoke("getRecommendations", {}, store)
    invoke("getWatchlist", {}, store)
    invoke("getLeaveBalance", {}, store)

    assert store.watchlist_ids() == []
    assert store.leave.taken == 0
    assert store.leave.remaining == 12


# ---------------------------------------------------------------------------
# Leave tools
# ---------------------------------------------------------------------------

def test_calculate_leave_deducts_days(store):
    result = invoke("calculateLeave", {"days": 3}, store)
    assert result["taken"] == 3
    assert result["remaining"] == 9
    assert result["message"] == "After taking 3 days, you have 9 days remaining"


def test_calculate_leave_clamps_at_zero(store):
    result = invoke("calculateLeave", {"days": 20}, store)
    assert result["remaining"] == 0
    assert result["requested"] == 20
    assert result["applied"] == 12
    assert result["taken"] == 12
    assert "only 12 were available" in result["message"]

    balance = invoke("getLeaveBalance", {}, store)
    assert balance == {"success": True, "taken": 12, "remaining": 0, "total": 12}


def test_calculate_leave_negative_and_missing_days(store):
    result = invoke("calculateLeave", {"days": -4}, store)
    assert result["applied"] == 0
    assert result["remaining"] == 12

    result = invoke("calculateLeave", {}, store)
    assert result["message"] == "You have 12 days remaining out of 12 total"


# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------

def test_concurrent_adds_never_duplicate(store):
    threads = [
        threading.Thread(target=invoke, args=("addToWatchlist", {"movie_id": "m1"}, store))
        for _ in range(16)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.watchlist_ids() == ["m1"]


def test_concurrent_leave_never_goes_negative(store):
    threads = [
        threading.Thread(target=invoke, args=("calculateLeave", {"days": 5}, store))
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.leave.remaining == 0
    assert store.leave.taken == 12
