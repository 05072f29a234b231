"""DI用ファクトリ関数。

statekv/ 直下に配置することで、api/ から store/ への
直接依存を避けつつ、FastAPI の Depends() で注入できる。
"""

from statekv.config import Settings
from statekv.interfaces.state_client import StateClientInterface

_settings: Settings | None = None
_state_client: StateClientInterface | None = None


def get_settings() -> Settings:
    """Settingsのシングルトンインスタンスを返す。"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_state_client() -> StateClientInterface:
    """確定済みバックエンドのシングルトンインスタンスを返す。

    初回呼び出し時にバックエンド選択（サイドカーのプローブ）を一度だけ行う。
    """
    global _state_client
    if _state_client is None:
        from statekv.selector import BackendSelector

        _state_client = BackendSelector(get_settings()).select().client
    return _state_client


def get_store_name() -> str:
    """設定されたストア名を返す。"""
    return get_settings().statestore_name


def _reset_all() -> None:
    """全シングルトンをリセットする（テスト用）。"""
    global _settings, _state_client
    _settings = None
    _state_client = None
