"""Handlers for the app's root, ``/``."""

from typing import Annotated

from fastapi import APIRouter, Depends
from safir.metadata import Metadata, get_metadata
from safir.slack.webhook import SlackRouteErrorHandler

from ..config import Config
from ..dependencies.config import config_dependency

router = APIRouter(route_class=SlackRouteErrorHandler)
"""Router to mount at the root of the application URL space."""

__all__ = ["router"]


@router.get(
    "/",
    description=(
        "Return metadata about the running application. Can also be used as"
        " a health check."
    ),
    response_model=Metadata,
    response_model_exclude_none=True,
    summary="Application metadata",
)
async def get_index(
    config: Annotated[Config, Depends(config_dependency)],
) -> Metadata:
    return get_metadata(
        package_name="simple-secrets", application_name=config.name
    )
