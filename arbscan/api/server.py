"""HTTP and WebSocket surface for the scanner."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ..bot import ArbitrageBot
from ..notify import events
from ..notify.events import Event

router = APIRouter()


def _exchanges_event(bot: ArbitrageBot) -> str:
    return Event(type=events.EXCHANGES, data=list(bot.exchanges)).to_json()


@router.get("/api/config")
async def read_config(request: Request):
    return request.app.state.bot.public_config()


@router.get("/api/status")
async def read_status(request: Request):
    return request.app.state.bot.get_status()


@router.post("/api/execute")
async def execute(request: Request, payload: Any = Body(None)):
    """Trigger execution of an opportunity-shaped payload."""
    result = await request.app.state.bot.execute_manual(payload)
    return result.to_dict()


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue):
    while True:
        event = await queue.get()
        await websocket.send_text(event.to_json())


async def _handle_messages(websocket: WebSocket, bot: ArbitrageBot):
    while True:
        try:
            message = await websocket.receive_json()
        except ValueError:
            logger.debug("WS: ignoring non-JSON message")
            continue

        if not isinstance(message, dict):
            continue

        kind = message.get("type")
        if kind == "execute":
            # The result reaches this client through the exec_result broadcast
            await bot.execute_manual(message.get("data"))
        elif kind == "get_exchanges":
            await websocket.send_text(_exchanges_event(bot))
        else:
            logger.debug(f"WS: unknown message type {kind!r}")


@router.websocket("/ws")
async def events_websocket(websocket: WebSocket):
    """Stream every bus event to the client and accept commands from it."""
    bot: ArbitrageBot = websocket.app.state.bot
    await websocket.accept()
    queue = bot.event_bus.subscribe()
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
    logger.info(f"WS: client {client} connected")

    tasks = []
    try:
        await websocket.send_text(_exchanges_event(bot))
        tasks = [
            asyncio.create_task(_forward_events(websocket, queue)),
            asyncio.create_task(_handle_messages(websocket, bot)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc and not isinstance(exc, WebSocketDisconnect):
                logger.error(f"WS: error with client {client}: {exc}")
    except WebSocketDisconnect:
        pass
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        bot.event_bus.unsubscribe(queue)
        logger.info(f"WS: client {client} disconnected")


def create_app(bot: ArbitrageBot, run_scanner: bool = False) -> FastAPI:
    """Build the FastAPI app around a bot.

    With ``run_scanner`` the app lifespan owns the scan loop: it is started on
    startup and stopped (exchanges closed) on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_scanner:
            await bot.start()
        try:
            yield
        finally:
            if run_scanner:
                await bot.stop()

    app = FastAPI(title="arbscan", lifespan=lifespan)
    app.state.bot = bot

    cors_origins = bot.config.server.cors_origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(router)
    return app
