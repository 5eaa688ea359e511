from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from frp_manager.config import Settings
from frp_manager.deps import get_dispatcher, get_settings
from frp_manager.services.dispatcher import Dispatcher, RequestContext
from frp_manager.trace import REQ_ID_HEADER

router = APIRouter(tags=["plugin"])

USER_MANAGER_ENDPOINT = "user-manager"
PORT_MANAGER_ENDPOINT = "port-manager"


async def _handle(request: Request, endpoint: str, dispatcher: Dispatcher, settings: Settings) -> JSONResponse:
    context = RequestContext(
        endpoint=endpoint,
        req_id=request.headers.get(REQ_ID_HEADER),
        query_op=request.query_params.get("op"),
        query_version=request.query_params.get("version"),
    )

    async def read_and_dispatch() -> dict:
        body = await request.body()
        return await dispatcher.dispatch(body, context)

    decision = await asyncio.wait_for(read_and_dispatch(), timeout=settings.request_timeout_seconds)
    return JSONResponse(content=decision)


@router.post("/user-manager")
async def user_manager(
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    return await _handle(request, USER_MANAGER_ENDPOINT, dispatcher, settings)


@router.post("/port-manager")
async def port_manager(
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
):
    return await _handle(request, PORT_MANAGER_ENDPOINT, dispatcher, settings)
