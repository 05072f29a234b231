"""エントリーポイント: python -m statekv

SIGINT / SIGTERM は uvicorn が受け取り、lifespan の終了処理が走る。
"""

import uvicorn

from statekv.api.main import app
from statekv.dependencies import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
