"""状態アクセス層のインメモリ実装。

サイドカーが使えないローカル開発用のフォールバック。
プロセス再起動をまたいだ永続化はしない。
"""

import logging
import threading
from contextlib import contextmanager

from statekv.interfaces.state_client import (
    Backend,
    BackendFailure,
    StateClientInterface,
)

logger = logging.getLogger(__name__)


class LockPoisonedError(RuntimeError):
    """書き込み中の例外でロックが汚染された。"""


class ReadWriteLock:
    """読み取りは並行、書き込みは排他のロック。

    待機中の writer がいる間は新しい reader を通さない（writer 優先）。
    書き込み区間から例外が漏れるとロックは汚染状態になり、
    以降の取得は全て LockPoisonedError になる。
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def _check(self) -> None:
        if self._poisoned:
            raise LockPoisonedError("lock poisoned by a failed write")

    @contextmanager
    def read(self):
        """読み取りロックを保持するコンテキスト。"""
        with self._cond:
            self._check()
            while self._writer or self._waiting_writers:
                self._cond.wait()
                self._check()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        """書き込みロックを保持するコンテキスト。"""
        with self._cond:
            self._check()
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
                    self._check()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        except BaseException:
            with self._cond:
                self._poisoned = True
            raise
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class InMemoryStore(StateClientInterface):
    """プロセス内の辞書による実装。

    store 名は受け取るが名前空間の分割には使わない（単一の空間）。
    """

    backend = Backend.IN_MEMORY

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._guard("len", None), self._lock.read():
            return len(self._data)

    @contextmanager
    def _guard(self, operation: str, key: str | None):
        """ロック汚染を BackendFailure に変換する。"""
        try:
            yield
        except LockPoisonedError as exc:
            logger.warning("in-memory store unusable: op=%s key=%s", operation, key)
            raise BackendFailure(operation, key, exc) from exc

    def get(self, store: str, key: str) -> bytes | None:
        with self._guard("get", key), self._lock.read():
            return self._data.get(key)

    def save(self, store: str, key: str, value: bytes) -> None:
        # 呼び出し側が後から書き換えても保存値が変わらないよう bytes に固定
        value = bytes(value)
        with self._guard("save", key), self._lock.write():
            self._data[key] = value

    def delete(self, store: str, key: str) -> None:
        with self._guard("delete", key), self._lock.write():
            self._data.pop(key, None)
