"""FastAPIアプリケーション。

状態 CRUD API + ヘルスチェック。
状態操作は全て確定済みの StateClientInterface に委譲し、
ステータスコードの決定はこの層だけが行う。
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from statekv.dependencies import (
    get_settings,
    get_state_client,
    get_store_name,
)
from statekv.interfaces.state_client import (
    BackendFailure,
    InvalidKeyError,
    StateClientInterface,
    validate_key,
)
from statekv.logging_setup import init_logging

logger = logging.getLogger(__name__)

ClientDep = Annotated[StateClientInterface, Depends(get_state_client)]
StoreNameDep = Annotated[str, Depends(get_store_name)]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """起動時にバックエンドを確定し、終了時に解放する。"""
    settings = app.dependency_overrides.get(get_settings, get_settings)()
    shutdown_logging = init_logging(settings.log_level)
    resolve = app.dependency_overrides.get(get_state_client, get_state_client)
    client = await run_in_threadpool(resolve)
    logger.info(
        "server starting: port=%s store=%s backend=%s",
        settings.app_port,
        settings.statestore_name,
        client.backend.value,
    )
    try:
        yield
    finally:
        logger.info("shutting down")
        await run_in_threadpool(client.close)
        logger.info("server stopped")
        shutdown_logging()


app = FastAPI(
    title="State KV API",
    version="0.1.0",
    lifespan=lifespan,
)


# ---------- ヘルパー ----------


def _missing_key() -> PlainTextResponse:
    return PlainTextResponse("missing key", status_code=400)


def _internal_error(exc: BackendFailure) -> PlainTextResponse:
    # 原因はログにだけ残し、クライアントには返さない
    logger.error("%s state failed: key=%s err=%s", exc.operation, exc.key, exc.cause)
    return PlainTextResponse("internal error", status_code=500)


# ---------- ヘルスチェック ----------


@app.get("/livez", response_class=PlainTextResponse)
async def livez():
    return "ok"


@app.get("/readyz", response_class=PlainTextResponse)
async def readyz():
    return "ok"


@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "ok"


# ---------- 状態 API ----------
# {key:path} で受けることで /api/v1/state/ も空キーとして検証に到達する


@app.get("/api/v1/state/{key:path}")
async def get_state(key: str, client: ClientDep, store: StoreNameDep):
    """値を取得する。未保存なら 404。"""
    try:
        validate_key(key)
        value = await run_in_threadpool(client.get, store, key)
    except InvalidKeyError:
        return _missing_key()
    except BackendFailure as exc:
        return _internal_error(exc)
    if value is None:
        return PlainTextResponse("not found", status_code=404)
    return Response(content=value, media_type="application/octet-stream")


@app.post("/api/v1/state/{key:path}")
async def save_state(
    key: str,
    request: Request,
    client: ClientDep,
    store: StoreNameDep,
):
    """リクエストボディをそのまま値として保存する。"""
    try:
        validate_key(key)
        body = await request.body()
        await run_in_threadpool(client.save, store, key, body)
    except InvalidKeyError:
        return _missing_key()
    except BackendFailure as exc:
        return _internal_error(exc)
    return Response(status_code=204)


@app.delete("/api/v1/state/{key:path}")
async def delete_state(key: str, client: ClientDep, store: StoreNameDep):
    """値を削除する。未保存でも 204。"""
    try:
        validate_key(key)
        await run_in_threadpool(client.delete, store, key)
    except InvalidKeyError:
        return _missing_key()
    except BackendFailure as exc:
        return _internal_error(exc)
    return Response(status_code=204)
