"""statekv ロガーの初期化と終了処理。

プロセス起動時に init_logging を一度呼び、返された関数を終了時に呼ぶ。
"""

import logging
from collections.abc import Callable

LOGGER_NAME = "statekv"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def init_logging(level: str = "INFO") -> Callable[[], None]:
    """statekv ロガーを初期化し、終了時に呼ぶ shutdown 関数を返す。

    何度呼んでもハンドラは1つだけ。
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(sh)

    def shutdown() -> None:
        for h in logger.handlers:
            h.flush()

    return shutdown
