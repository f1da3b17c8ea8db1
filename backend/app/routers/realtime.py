"""실시간 알림 WebSocket 엔드포인트입니다. 연결된 사용자를 연결 레지스트리에 등록합니다."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from app.database import SessionLocal
from app.middleware.auth_middleware import user_from_token
from app.utils.connection_registry import ConnectionHandle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

POLICY_VIOLATION = 1008


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = ""):
    # 세션은 사용자 확인에만 쓰고 연결이 유지되는 동안 커넥션을 점유하지 않는다.
    user_id = None
    with SessionLocal() as db:
        try:
            user = user_from_token(db, token) if token else None
        except HTTPException:
            user = None
        if user is not None:
            user_id = user.user_id
    if user_id is None:
        await websocket.close(code=POLICY_VIOLATION)
        return

    registry = websocket.app.state.connection_registry
    await websocket.accept()
    handle = ConnectionHandle(websocket, asyncio.get_running_loop())
    registry.register(user_id, handle)
    logger.info("[realtime] user=%s connected", user_id)
    try:
        await websocket.send_json({"event": "connected", "data": {"user_id": user_id}})
        while True:
            # 클라이언트 메시지는 연결 유지(ping) 용도로만 받는다.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(user_id, handle)
        logger.info("[realtime] user=%s disconnected", user_id)
