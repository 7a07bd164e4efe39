"""DeepThinking MCP Server.

FastMCP 2.0 surface over the mode-handler engine. The calling LLM does the
reasoning; these tools validate each step, build the thought record and
return mode-specific feedback.

Tools:
1. think - Validate and record one reasoning step in any of the 35 modes
2. modes - List registered modes with their thought types
3. status - Server/session status

Run with: deepthinking
Or: python -m deepthinking.server
"""

# Note: no `from __future__ import annotations` here; FastMCP resolves the
# tool signatures at decorator time.

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import orjson
from dotenv import load_dotenv
from fastmcp import Context, FastMCP
from loguru import logger

from deepthinking import __version__
from deepthinking.config import get_config
from deepthinking.modes.registry import ThoughtFactory, get_mode_registry
from deepthinking.utils.errors import SessionNotFoundError, ToolExecutionError, UnknownModeError
from deepthinking.utils.logging import get_logger
from deepthinking.utils.session import InMemorySessionStore

# Load environment variables from .env file (for local development)
load_dotenv()

CONFIG = get_config()
CLEANUP_INTERVAL_SECONDS = 300

log = get_logger("deepthinking.server")


def _json(data: dict[str, Any] | list[Any] | None, *, indent: bool = True) -> str:
    """Serialize data to a JSON string."""
    if data is None:
        data = {}
    opts = orjson.OPT_INDENT_2 if indent else 0
    result: bytes = orjson.dumps(data, option=opts, default=str)
    return result.decode("utf-8")


# =============================================================================
# Engine and Session Store
# =============================================================================

_factory: ThoughtFactory | None = None
_store: InMemorySessionStore | None = None


def get_factory() -> ThoughtFactory:
    """Get or create the thought factory bound to the process-wide registry."""
    global _factory
    if _factory is None:
        _factory = ThoughtFactory(
            get_mode_registry(),
            max_thought_size=CONFIG.input_limits.max_thought_size,
        )
    return _factory


def get_session_store() -> InMemorySessionStore:
    """Get or create the in-memory session store."""
    global _store
    if _store is None:
        _store = InMemorySessionStore(max_thoughts_per_session=CONFIG.session.max_thoughts_per_session)
    return _store


def reset_server_state() -> None:
    """Drop the factory and session store (for testing)."""
    global _factory, _store
    _factory = None
    _store = None


# =============================================================================
# Automatic Session Cleanup
# =============================================================================

_cleanup_task: asyncio.Task[None] | None = None
_active_lifespans = 0


async def _cleanup_stale_sessions() -> None:
    """Background task to clean up stale sessions."""
    max_age = timedelta(minutes=CONFIG.session.max_age_minutes)
    logger.info(
        f"Session cleanup task started (max_age={CONFIG.session.max_age_minutes}m, "
        f"interval={CLEANUP_INTERVAL_SECONDS}s)"
    )
    while True:
        try:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            removed = get_session_store().cleanup_stale(max_age)
            if removed:
                logger.info(f"Cleaned up {len(removed)} stale sessions: {removed}")
        except asyncio.CancelledError:
            logger.info("Session cleanup task cancelled")
            break


def _start_cleanup_task() -> None:
    """Start the background cleanup task if not already running."""
    global _cleanup_task
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No event loop available, cleanup task will start with server")
        return
    if _cleanup_task is None or _cleanup_task.done():
        _cleanup_task = loop.create_task(_cleanup_stale_sessions())
        logger.debug("Cleanup task scheduled")


def _stop_cleanup_task() -> None:
    """Stop the background cleanup task."""
    global _cleanup_task
    if _cleanup_task is not None and not _cleanup_task.done():
        _cleanup_task.cancel()
        _cleanup_task = None
        logger.debug("Cleanup task stopped")


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Run the cleanup task while at least one server session is open."""
    global _active_lifespans
    _active_lifespans += 1
    _start_cleanup_task()
    try:
        yield
    finally:
        _active_lifespans -= 1
        if _active_lifespans == 0:
            _stop_cleanup_task()


# =============================================================================
# Initialize FastMCP Server
# =============================================================================

mcp = FastMCP(
    name=CONFIG.server.name,
    instructions="""DeepThinking MCP Server - structured reasoning across 35 thinking modes.

ARCHITECTURE: You (the LLM) do ALL reasoning. These tools VALIDATE each step,
RECORD it as a typed thought and return mode-specific FEEDBACK.

1. modes() - List available modes and their thought types
2. think(mode, thought, thought_number, total_thoughts, fields=...) - Submit one step
   Mode-specific structure goes in `fields` (camelCase or snake_case keys),
   e.g. modal: {"worlds": [...], "accessibilityRelations": [...], "modalLogicType": "S5"}
   Returns the recorded thought plus suggestions, guiding questions,
   warnings, related modes and metrics; or status "invalid" with error codes.
3. status(session_id?) - Server or session summary

WORKFLOW:
1. think(mode="temporal", thought="Order the events...", thought_number=1, total_thoughts=3,
         fields={"events": [...], "relations": [...]})
   -> session_id, thought, enhancements
2. think(..., session_id=ID, thought_number=2, ...)
3. think(..., thought_number=3, next_thought_needed=False)
""",
    lifespan=_lifespan,
)


# =============================================================================
# TOOL 1: THINK
# =============================================================================


@mcp.tool
async def think(
    thought: str,
    thought_number: int,
    total_thoughts: int,
    mode: str | None = None,
    next_thought_needed: bool = True,
    session_id: str | None = None,
    thought_type: str | None = None,
    is_revision: bool | None = None,
    revises_thought: str | None = None,
    fields: dict[str, Any] | None = None,
    ctx: Context | None = None,
) -> str:
    """Validate one reasoning step and record it as a thought.

    Args:
        thought: Content of this reasoning step.
        thought_number: Position of the step (1-based).
        total_thoughts: Expected number of steps.
        mode: Thinking mode tag (e.g. "modal", "temporal"); server default if omitted.
        next_thought_needed: Whether more steps follow.
        session_id: Existing session to append to; a new one is created if omitted.
        thought_type: Mode-specific thought type.
        is_revision: Whether this step revises an earlier one.
        revises_thought: Id of the revised thought.
        fields: Mode-specific structure (worlds, events, hypotheses, ...).

    Returns:
        JSON with status "ok", the thought, enhancements and warnings; or
        status "invalid" with errors and warnings.

    """
    sid = session_id or str(uuid.uuid4())
    total_limit = CONFIG.input_limits.max_total_thoughts
    try:
        if total_thoughts > total_limit:
            return _json(
                {
                    "status": "invalid",
                    "errors": [
                        {
                            "field": "totalThoughts",
                            "message": f"Total thoughts exceeds maximum ({total_thoughts} > {total_limit})",
                            "code": "INPUT_TOO_LARGE",
                        }
                    ],
                    "warnings": [],
                },
                indent=False,
            )
        raw: dict[str, Any] = dict(fields or {})
        raw.update(
            {
                "thought": thought,
                "thoughtNumber": thought_number,
                "totalThoughts": total_thoughts,
                "nextThoughtNeeded": next_thought_needed,
            }
        )
        for key, value in (
            ("mode", mode),
            ("thoughtType", thought_type),
            ("isRevision", is_revision),
            ("revisesThought", revises_thought),
        ):
            if value is not None:
                raw[key] = value

        factory = get_factory()
        with log.context(session_id=sid, mode=mode, thought_number=thought_number, tool_name="think"):
            result = factory.validate(raw)
            log.validation(result)
            if not result.valid:
                return _json({"status": "invalid", **result.to_dict()}, indent=False)

            record = factory.create_thought(raw, sid)
            enhancements = factory.get_enhancements(record)
            session_summary = None
            if CONFIG.session.record_thoughts:
                session_summary = get_session_store().append(sid, record).summary()
            log.info("Thought recorded", resolved_mode=record.mode.value)

        if ctx:
            await ctx.info(f"Recorded {record.mode.value} thought {record.thought_number}/{record.total_thoughts}")

        response: dict[str, Any] = {
            "status": "ok",
            "session_id": sid,
            "thought": record.to_dict(),
            "enhancements": enhancements.to_dict(),
            "warnings": [w.to_dict() for w in result.warnings],
        }
        if session_summary is not None:
            response["session"] = session_summary
        return _json(response)

    except ValueError as e:
        return _json({"status": "error", "error": str(e)}, indent=False)
    except Exception as e:
        error = ToolExecutionError("think", str(e), {"mode": mode, "session_id": sid})
        logger.error(f"Think failed: {e}")
        return _json(error.to_dict(), indent=False)


# =============================================================================
# TOOL 2: MODES
# =============================================================================


@mcp.tool
async def modes(mode: str | None = None) -> str:
    """List registered thinking modes, or describe one.

    Args:
        mode: Optional mode tag to describe.

    Returns:
        JSON list of modes with names, descriptions and thought types.

    """
    registry = get_mode_registry()
    try:
        if mode:
            return _json(registry.mode_status(mode))
        return _json({"modes": [h.describe() for h in registry.handlers()], **registry.stats()})
    except UnknownModeError as e:
        return _json({"error": str(e), "code": e.code, "available": e.available}, indent=False)
    except Exception as e:
        error = ToolExecutionError("modes", str(e), {"mode": mode})
        logger.error(f"Modes listing failed: {e}")
        return _json(error.to_dict(), indent=False)


# =============================================================================
# TOOL 3: STATUS
# =============================================================================


@mcp.tool
async def status(
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Get server status or specific session status.

    Args:
        session_id: Optional session ID to get specific session status

    Returns:
        JSON with server info and session counts, or specific session state

    """
    try:
        store = get_session_store()
        if session_id:
            try:
                return _json(store.get(session_id).summary())
            except SessionNotFoundError:
                return _json({"error": f"Session not found: {session_id}"}, indent=False)

        status_result: dict[str, Any] = {
            "server": {
                "name": CONFIG.server.name,
                "transport": CONFIG.server.transport,
                "tools": ["think", "modes", "status"],
                "version": __version__,
            },
            "registry": get_mode_registry().stats(),
            "sessions": {
                "total": store.session_count(),
                "max_thoughts_per_session": CONFIG.session.max_thoughts_per_session,
                "recording": CONFIG.session.record_thoughts,
            },
            "engine": CONFIG.to_dict()["engine"],
            "cleanup": {
                "max_age_minutes": CONFIG.session.max_age_minutes,
                "interval_seconds": CLEANUP_INTERVAL_SECONDS,
                "task_running": _cleanup_task is not None and not _cleanup_task.done(),
            },
        }
        if ctx:
            await ctx.info(f"Server ready, {store.session_count()} session(s)")
        return _json(status_result)

    except Exception as e:
        error = ToolExecutionError("status", str(e))
        logger.error(f"Status check failed: {e}")
        return _json(error.to_dict(), indent=False)


def main() -> None:
    """Run the DeepThinking MCP server."""
    transport = CONFIG.server.transport
    logger.info(f"Starting {CONFIG.server.name} (transport: {transport})")
    logger.info(f"Registered {len(get_mode_registry())} mode handlers")

    # the cleanup task starts inside the running loop via _lifespan
    if transport == "stdio":
        mcp.run(transport="stdio")
    elif transport == "http":
        mcp.run(transport="streamable-http", host=CONFIG.server.host, port=CONFIG.server.port)
    elif transport == "sse":
        mcp.run(transport="sse", host=CONFIG.server.host, port=CONFIG.server.port)
    else:
        logger.warning(f"Unknown transport '{transport}', falling back to stdio")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
