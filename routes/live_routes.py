# live_routes.py
import asyncio
import logging

import anyio
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder

from services.firebase_client import get_db
from services.live_feed import LiveFeed
from services.session_manager import SessionManager
from routes.auth_routes import get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Live"])


@router.websocket("/ws")
async def live_updates(
    websocket: WebSocket,
    token: str = Query(...),
    manager: SessionManager = Depends(get_session_manager),
    db=Depends(get_db),
):
    """
    Empuja snapshots completos de reports, rewards y userRewards.
    Mensaje: {"collection": nombre, "items": [...]}
    """
    session = await run_in_threadpool(manager.resolve, token)
    if session is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    # Los callbacks de Firestore llegan desde otros hilos
    def push(collection: str, items: list) -> None:
        if loop.is_closed():
            return
        loop.call_soon_threadsafe(queue.put_nowait, {"collection": collection, "items": items})

    feed = LiveFeed(db, on_change=push)

    def on_session_change(session_id, context) -> None:
        if session_id == session.session_id and context is None:
            feed.set_identity(None)

    unsubscribe = manager.events.subscribe(on_session_change)

    async def send_snapshots(scope: anyio.CancelScope):
        try:
            while True:
                message = await queue.get()
                await websocket.send_json(jsonable_encoder(message))
        except WebSocketDisconnect:
            scope.cancel()

    async def wait_for_disconnect(scope: anyio.CancelScope):
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            scope.cancel()

    try:
        await run_in_threadpool(feed.start)
        await run_in_threadpool(feed.set_identity, session.id)
        logger.info("Feed en vivo abierto para %s", session.id)

        # El primero que termina (cliente cerrado o envío fallido) cancela al otro
        async with anyio.create_task_group() as tg:
            tg.start_soon(send_snapshots, tg.cancel_scope)
            tg.start_soon(wait_for_disconnect, tg.cancel_scope)
    finally:
        unsubscribe()
        feed.stop()
        logger.info("Feed en vivo cerrado para %s", session.id)
