"""Presence registry endpoints.

Each reply carries an explicit ``is_ok`` flag and an optional ``message``;
the HTTP status encodes the same outcome for callers that ignore the body.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from here.api.v1.dependencies import RegistryDep
from here.core.errors import InvalidPasswordError, NotFoundError, StoreError
from here.schemas.presence import PresenceRecord
from here.schemas.registry import (
    AppInfo,
    GetClientInfoResponse,
    PostClientInfoResponse,
    ResponseMessage,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

PATH_TO_GET_SERVER_INFO = "/server"
PATH_TO_GET_CLIENT_INFO = "/client/get"
PATH_TO_POST_CLIENT_INFO = "/client/post"

router = APIRouter(prefix="/here", tags=["here"])


def _reply(status_code: int, body: BaseModel) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.get(PATH_TO_GET_SERVER_INFO, response_model=AppInfo)
async def get_server_info(registry: RegistryDep) -> AppInfo:
    """Return the application name and version."""
    return registry.server_info()


@router.get(
    PATH_TO_GET_CLIENT_INFO,
    response_model=GetClientInfoResponse,
    responses={
        status.HTTP_403_FORBIDDEN: {"model": GetClientInfoResponse},
        status.HTTP_404_NOT_FOUND: {"model": GetClientInfoResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": GetClientInfoResponse},
    },
)
async def get_client_info(
    registry: RegistryDep,
    account: Annotated[str, Query(description="Account to look up")],
    passwd: Annotated[str | None, Query(description="Plaintext account password")] = None,
) -> JSONResponse:
    """Look up the presence registered for an account.

    Args:
        registry: Registry service bound to the lease file
        account: Account name to look up
        passwd: Optional plaintext password, digested server-side

    Returns:
        ``is_ok`` with the full record when the password verifies, ``is_ok``
        alone when an unprotected record is confirmed without a password
    """
    try:
        record = await asyncio.to_thread(registry.lookup, account, passwd)
    except NotFoundError:
        return _reply(
            status.HTTP_404_NOT_FOUND,
            GetClientInfoResponse(message=ResponseMessage.NOT_FOUND),
        )
    except InvalidPasswordError:
        return _reply(
            status.HTTP_403_FORBIDDEN,
            GetClientInfoResponse(message=ResponseMessage.INVALID_PASSWORD),
        )
    except StoreError as exc:
        logger.error("Lookup of account %r failed: %s", account, exc)
        return _reply(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            GetClientInfoResponse(message=ResponseMessage.DATABASE_ERROR),
        )

    return _reply(status.HTTP_200_OK, GetClientInfoResponse(is_ok=True, data=record))


@router.post(
    PATH_TO_POST_CLIENT_INFO,
    response_model=PostClientInfoResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": PostClientInfoResponse}},
)
async def post_client_info(registry: RegistryDep, record: PresenceRecord) -> JSONResponse:
    """Register a new presence lease and tell the client when to refresh."""
    logger.debug("New post request from client, id = %d", record.id)
    try:
        lease = await asyncio.to_thread(registry.register, record)
    except StoreError as exc:
        logger.error("Registration of account %r failed: %s", record.account, exc)
        return _reply(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            PostClientInfoResponse.for_record(record, message=ResponseMessage.DATABASE_ERROR),
        )

    return _reply(
        status.HTTP_200_OK,
        PostClientInfoResponse.for_record(record, is_ok=True, lifetime=lease.lifetime_seconds),
    )
