"""사용자별 실시간 연결(WebSocket) 레지스트리입니다.

서비스 레이어는 전역 상태 대신 요청 의존성으로 주입받은 레지스트리만 사용합니다.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, Optional

from fastapi import Request

logger = logging.getLogger(__name__)


class ConnectionHandle:
    def __init__(self, websocket: Any, loop: asyncio.AbstractEventLoop):
        self.websocket = websocket
        self.loop = loop


class ConnectionRegistry:
    def __init__(self):
        self._handles: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def register(self, user_id, handle) -> None:
        with self._lock:
            self._handles[str(user_id)] = handle

    def lookup(self, user_id) -> Optional[Any]:
        with self._lock:
            return self._handles.get(str(user_id))

    def unregister(self, user_id, handle=None) -> None:
        key = str(user_id)
        with self._lock:
            current = self._handles.get(key)
            # 같은 사용자의 새 연결이 이미 등록됐다면 유지한다.
            if current is None or (handle is not None and current is not handle):
                return
            del self._handles[key]

    def push(self, handle: ConnectionHandle, event: str, payload: dict) -> None:
        """연결된 이벤트 루프에 전송을 예약하고 완료를 기다리지 않습니다."""
        message = {"event": event, "data": payload}
        future = asyncio.run_coroutine_threadsafe(handle.websocket.send_json(message), handle.loop)
        future.add_done_callback(_log_send_failure)


def _log_send_failure(future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning("[realtime] websocket send failed: %s", exc)


def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connection_registry
