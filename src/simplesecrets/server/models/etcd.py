"""Models for replies from the etcd v2 keys API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["EtcdError", "EtcdNode", "EtcdReply"]


class EtcdNode(BaseModel):
    """A single key in etcd."""

    model_config = ConfigDict(extra="ignore")

    key: str = Field(..., title="Key")

    value: str | None = Field(
        None, title="Value", description="Not present for directories"
    )

    ttl: int | None = Field(
        None, title="Remaining lifetime", description="Seconds, if expiring"
    )


class EtcdReply(BaseModel):
    """Successful reply to a keys API request."""

    model_config = ConfigDict(extra="ignore")

    action: str = Field(..., title="Action performed")

    node: EtcdNode = Field(..., title="Affected node")


class EtcdError(BaseModel):
    """Error reply from the keys API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    error_code: int = Field(..., alias="errorCode", title="etcd error code")

    message: str = Field(..., title="Error message")

    cause: str | None = Field(None, title="Key that caused the error")
