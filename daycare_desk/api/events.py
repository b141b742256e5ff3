"""
Real-time event stream for connected front-desk screens.
Clients connect to /ws?token=<session token> and receive
``{"event": ..., "data": ...}`` messages; there is no replay of past events.
"""
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from daycare_desk.errors import AuthError

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _listen(websocket: WebSocket) -> None:
    # Clients send nothing meaningful; reading only notices the disconnect
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/ws")
async def events(websocket: WebSocket, token: str = ""):
    try:
        user = await run_in_threadpool(websocket.app.state.guard.current_user, token)
    except AuthError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def deliver(message: dict) -> None:
        # Publishers run in the threadpool; hand the message to this loop without waiting
        loop.call_soon_threadsafe(queue.put_nowait, message)

    # Subscribe before accepting so nothing published after the handshake is missed
    unsubscribe = websocket.app.state.broadcaster.subscribe(deliver)
    await websocket.accept()
    logger.info("Observer connected for user %s", user.username)

    tasks = {asyncio.create_task(_forward(websocket, queue)), asyncio.create_task(_listen(websocket))}
    try:
        # Whichever side ends first (client gone or a failed send) ends the stream
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task.exception() is not None:
                logger.warning("Event stream for user %s failed: %r", user.username, task.exception())
    finally:
        unsubscribe()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    logger.info("Observer disconnected for user %s", user.username)
