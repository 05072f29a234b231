"""起動時のバックエンド選択。

サイドカーのヘルスエンドポイントを期限付きでポーリングし、
成功すれば RPC 接続を張ってリモート実装を、失敗すればインメモリ実装を選ぶ。
選択はプロセス中に一度だけで、以後は変わらない。
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import httpx

from statekv.config import Settings
from statekv.interfaces.state_client import (
    Backend,
    BackendFailure,
    StateClientInterface,
)
from statekv.store.memory import InMemoryStore
from statekv.store.remote import connect_remote

logger = logging.getLogger(__name__)


class SelectorState(str, Enum):
    PROBING = "probing"
    COMMITTED = "committed"


@dataclass(frozen=True)
class SelectionResult:
    """確定したバックエンド。

    reason は選択理由（ログと診断用）。
    """

    backend: Backend
    client: StateClientInterface
    reason: str


class BackendSelector:
    """Probing → Committed の一方向状態機械。

    期限はハード制約として扱う。各試行のタイムアウトと待機時間は
    残り時間で切り詰めるため、プローブ全体が期限を超えることはない。
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.Client | None = None,
        connect: Callable[[str, float], StateClientInterface] = connect_remote,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._connect = connect
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._result: SelectionResult | None = None

    @property
    def state(self) -> SelectorState:
        if self._result is None:
            return SelectorState.PROBING
        return SelectorState.COMMITTED

    @property
    def result(self) -> SelectionResult | None:
        return self._result

    def select(self) -> SelectionResult:
        """バックエンドを確定して返す。2回目以降は同じ結果を返す。"""
        with self._lock:
            if self._result is None:
                self._result = self._run()
                logger.info(
                    "state backend committed: backend=%s reason=%s",
                    self._result.backend.value,
                    self._result.reason,
                )
            return self._result

    def _run(self) -> SelectionResult:
        if not self._settings.sidecar_expected:
            return self._fallback("no sidecar configured")

        if not self._wait_for_sidecar():
            return self._fallback("sidecar health probe timed out")

        try:
            client = self._connect(
                self._settings.sidecar_grpc_address,
                self._settings.probe_attempt_timeout_s,
            )
        except BackendFailure as exc:
            return self._fallback(f"sidecar rpc connect failed: {exc.cause}")
        return SelectionResult(Backend.REMOTE, client, "sidecar ready")

    def _fallback(self, reason: str) -> SelectionResult:
        # 縮退運転は正常系。エラーではなく info で残す
        logger.info("sidecar unavailable, using in-memory store for local dev: %s", reason)
        return SelectionResult(Backend.IN_MEMORY, InMemoryStore(), reason)

    def _wait_for_sidecar(self) -> bool:
        """ヘルスエンドポイントが成功を返すまでポーリングする。

        Returns:
            期限内に成功応答を得たら True
        """
        url = self._settings.sidecar_health_url
        deadline = self._clock() + self._settings.probe_deadline_s
        client = self._http_client or httpx.Client()
        try:
            while True:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return False
                timeout = min(self._settings.probe_attempt_timeout_s, remaining)
                try:
                    response = client.get(url, timeout=timeout)
                except httpx.HTTPError as exc:
                    logger.debug("sidecar health probe failed: %s", exc)
                else:
                    if response.is_success:
                        logger.info("sidecar ready")
                        return True
                    logger.debug("sidecar not ready: status=%s", response.status_code)

                remaining = deadline - self._clock()
                if remaining <= 0:
                    return False
                self._sleep(min(self._settings.probe_interval_s, remaining))
        finally:
            if self._http_client is None:
                client.close()
