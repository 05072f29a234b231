"""状態アクセス層のリモート（サイドカー）実装。

Dapr サイドカーの状態 RPC を StateClientInterface に適合させる。
1本の接続を排他ロックで共有し、RPC は常に1つずつ流れる。
"""

import logging
import threading

from statekv.interfaces.state_client import (
    Backend,
    BackendFailure,
    StateClientInterface,
)

logger = logging.getLogger(__name__)


class RemoteStateClient(StateClientInterface):
    """サイドカー接続をラップした実装。

    リトライはしない。RPC の失敗（接続断・リモート側エラー・タイムアウト）は
    全て BackendFailure として即座に呼び出し元へ返す。
    """

    backend = Backend.REMOTE

    def __init__(self, connection) -> None:
        """初期化。

        Args:
            connection: get_state / save_state / delete_state / close を持つ
                        Dapr クライアント（dapr.clients.DaprClient 互換）
        """
        self._connection = connection
        self._lock = threading.Lock()

    def get(self, store: str, key: str) -> bytes | None:
        with self._lock:
            try:
                response = self._connection.get_state(store_name=store, key=key)
            except Exception as exc:
                raise BackendFailure("get", key, exc) from exc
        data = response.data
        # 空ペイロードは「不在」
        if not data:
            return None
        return bytes(data)

    def save(self, store: str, key: str, value: bytes) -> None:
        with self._lock:
            try:
                self._connection.save_state(
                    store_name=store, key=key, value=bytes(value)
                )
            except Exception as exc:
                raise BackendFailure("save", key, exc) from exc

    def delete(self, store: str, key: str) -> None:
        with self._lock:
            try:
                self._connection.delete_state(store_name=store, key=key)
            except Exception as exc:
                raise BackendFailure("delete", key, exc) from exc

    def close(self) -> None:
        with self._lock:
            try:
                self._connection.close()
            except Exception:
                logger.warning("failed to close sidecar connection", exc_info=True)


def connect_remote(address: str, timeout: float = 2.0) -> RemoteStateClient:
    """サイドカーへ RPC 接続を確立して RemoteStateClient を返す。

    Args:
        address: gRPC エンドポイント（例: "127.0.0.1:50001"）
        timeout: 接続待ちの上限秒数

    Raises:
        BackendFailure: 接続できなかった場合
    """
    from dapr.clients import DaprClient

    try:
        connection = DaprClient(address=address)
    except Exception as exc:
        raise BackendFailure("connect", None, exc) from exc
    try:
        connection.wait(timeout)
    except Exception as exc:
        connection.close()
        raise BackendFailure("connect", None, exc) from exc
    logger.info("connected to sidecar: address=%s", address)
    return RemoteStateClient(connection)
