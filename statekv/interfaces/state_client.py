"""状態アクセス層の抽象インターフェース。

リモート（サイドカー）とインメモリの両バックエンドがこの契約を実装する。
HTTP層はこのインターフェースだけを介して状態を読み書きする。
"""

from abc import ABC, abstractmethod
from enum import Enum


class Backend(str, Enum):
    """起動時に一度だけ選ばれるバックエンドの種別。"""

    REMOTE = "remote"
    IN_MEMORY = "in_memory"


class StateError(Exception):
    """状態アクセスに関する例外の基底クラス。"""


class InvalidKeyError(StateError):
    """キーが空などで不正。バックエンド呼び出し前に弾く。"""


class BackendFailure(StateError):
    """バックエンド（ロック・接続・RPC）が操作を完了できなかった。

    Attributes:
        operation: 失敗した操作名（get / save / delete / connect）
        key: 対象キー（connect では None）
        cause: 下位の例外
    """

    def __init__(
        self,
        operation: str,
        key: str | None,
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"{operation} failed"
        if key is not None:
            message += f": key={key}"
        if cause is not None:
            message += f" err={cause}"
        super().__init__(message)


def validate_key(key: str) -> str:
    """キーを検証して返す。空キーは InvalidKeyError。"""
    if not key:
        raise InvalidKeyError("missing key")
    return key


class StateClientInterface(ABC):
    """状態アクセスの抽象インターフェース。

    全操作は (store, key) を受け取る。実装は外部同期なしに
    複数スレッドから同時に呼び出せなければならない。
    媒体側の失敗は全て BackendFailure として送出する。
    """

    backend: Backend

    @abstractmethod
    def get(self, store: str, key: str) -> bytes | None:
        """現在値を取得する。

        存在しない場合はエラーではなく None を返す。
        """
        ...

    @abstractmethod
    def save(self, store: str, key: str, value: bytes) -> None:
        """値を保存する（upsert、後勝ち）。

        空のバイト列も正当な値として保存する（不在とは区別される）。
        """
        ...

    @abstractmethod
    def delete(self, store: str, key: str) -> None:
        """キーを削除する。存在しない場合もエラーにしない。"""
        ...

    def close(self) -> None:
        """保持しているリソースを解放する（プロセス終了時）。"""
