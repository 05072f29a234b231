"""テスト用のフェイク。"""

import threading
import time
from types import SimpleNamespace


class FakeDaprClient:
    """dapr.clients.DaprClient の状態 API だけを模したフェイク。

    実際のサイドカーと同様、未保存キーの取得は空ペイロードを返す。
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.data: dict[tuple[str, str], bytes] = {}
        self.calls: list[tuple] = []
        self.closed = False
        self.fail_with: BaseException | None = None
        self._delay = delay
        self._guard = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def _enter(self, *call) -> None:
        with self._guard:
            self.calls.append(call)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self._delay:
            time.sleep(self._delay)

    def _exit(self) -> None:
        with self._guard:
            self.in_flight -= 1

    def get_state(self, store_name, key, **kwargs):
        self._enter("get_state", store_name, key, kwargs)
        try:
            if self.fail_with is not None:
                raise self.fail_with
            return SimpleNamespace(data=self.data.get((store_name, key), b""))
        finally:
            self._exit()

    def save_state(self, store_name, key, value, **kwargs):
        self._enter("save_state", store_name, key, kwargs)
        try:
            if self.fail_with is not None:
                raise self.fail_with
            self.data[(store_name, key)] = value
        finally:
            self._exit()

    def delete_state(self, store_name, key, **kwargs):
        self._enter("delete_state", store_name, key, kwargs)
        try:
            if self.fail_with is not None:
                raise self.fail_with
            self.data.pop((store_name, key), None)
        finally:
            self._exit()

    def close(self):
        self.closed = True


class SpyStateClient:
    """呼び出しを記録するだけの StateClient（バックエンド未到達の検証用）。"""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.backend = inner.backend
        self.calls: list[tuple[str, str]] = []

    def get(self, store, key):
        self.calls.append(("get", key))
        return self.inner.get(store, key)

    def save(self, store, key, value):
        self.calls.append(("save", key))
        return self.inner.save(store, key, value)

    def delete(self, store, key):
        self.calls.append(("delete", key))
        return self.inner.delete(store, key)

    def close(self):
        self.inner.close()
