"""Routes for logging in and for storing and retrieving secrets."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from safir.models import ErrorModel
from safir.slack.webhook import SlackRouteErrorHandler

from ..dependencies.context import RequestContext, context_dependency
from ..exceptions import InvalidCredentialsError

router = APIRouter(route_class=SlackRouteErrorHandler)
"""Router to mount into the application."""

_basic_auth = HTTPBasic(auto_error=False)

__all__ = ["router"]


@router.get(
    "/login",
    summary="Obtain a session token",
    response_class=PlainTextResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorModel}
    },
    tags=["auth"],
)
async def get_login(
    credentials: Annotated[HTTPBasicCredentials | None, Depends(_basic_auth)],
    context: Annotated[RequestContext, Depends(context_dependency)],
) -> str:
    if not credentials or not credentials.password:
        raise InvalidCredentialsError("Username and password required")
    context.rebind_logger(user=credentials.username)
    auth_service = context.factory.create_auth_service()
    return await auth_service.login(
        credentials.username, credentials.password
    )


@router.post(
    "/set/{name}/{value}",
    summary="Store a secret",
    response_class=PlainTextResponse,
    responses={
        400: {"description": "Token required", "model": ErrorModel},
        401: {"description": "Bad token", "model": ErrorModel},
    },
    tags=["secrets"],
)
async def post_secret(
    name: str,
    value: str,
    context: Annotated[RequestContext, Depends(context_dependency)],
    token: Annotated[
        str | None, Query(title="Session token", description="From /login")
    ] = None,
) -> str:
    context.rebind_logger(secret=name)
    secret_service = context.factory.create_secret_service()
    uuid = await secret_service.set_secret(name, value, token)
    return str(uuid)


@router.get(
    "/get/{name}",
    summary="Retrieve a secret",
    response_class=PlainTextResponse,
    responses={
        400: {
            "description": "Token required or invalid secret",
            "model": ErrorModel,
        },
        401: {"description": "Bad token", "model": ErrorModel},
    },
    tags=["secrets"],
)
async def get_secret(
    name: str,
    context: Annotated[RequestContext, Depends(context_dependency)],
    token: Annotated[
        str | None, Query(title="Session token", description="From /login")
    ] = None,
) -> str:
    context.rebind_logger(secret=name)
    secret_service = context.factory.create_secret_service()
    return await secret_service.get_secret(name, token)
