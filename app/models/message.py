import uuid
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class EntityId(BaseModel):
    entity_type: str = "DEVICE"
    id: str


class Msg(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str = "POST_TELEMETRY_REQUEST"
    originator: EntityId
    metadata: dict[str, str] = Field(default_factory=dict)
    data: str = "{}"


class NodeSuccess(BaseModel):
    relation: Literal["Success"] = "Success"
    msg: Msg


class NodeFailure(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    relation: Literal["Failure"] = "Failure"
    msg: Msg
    error: Exception


NodeOutcome = Union[NodeSuccess, NodeFailure]
