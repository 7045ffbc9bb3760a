from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from .errors import ProtocolError


BYREF_TAG = "$jsii.byref"
DATE_TAG = "$jsii.date"
ENUM_TAG = "$jsii.enum"


class ObjRefRequest(BaseModel):
    """Base for requests addressed at a live object.

    `objref` is accepted either as the bare handle or as a byref tag.
    """

    objref: str

    @field_validator("objref", mode="before")
    @classmethod
    def _unwrap_byref(cls, value: Any) -> Any:
        if isinstance(value, dict) and BYREF_TAG in value:
            return value[BYREF_TAG]
        return value


class LoadRequest(BaseModel):
    api: Literal["load"]
    name: str
    locator: str


class CreateRequest(BaseModel):
    api: Literal["create"]
    fqn: str
    args: List[Any] = Field(default_factory=list)


class InvokeRequest(ObjRefRequest):
    api: Literal["invoke"]
    method: str
    args: List[Any] = Field(default_factory=list)


class StaticInvokeRequest(BaseModel):
    api: Literal["sinvoke"]
    fqn: str
    method: str
    args: List[Any] = Field(default_factory=list)


class GetRequest(ObjRefRequest):
    api: Literal["get"]
    property: str


class StaticGetRequest(BaseModel):
    api: Literal["sget"]
    fqn: str
    property: str


class SetRequest(ObjRefRequest):
    api: Literal["set"]
    property: str
    value: Any


class StaticSetRequest(BaseModel):
    api: Literal["sset"]
    fqn: str
    property: str
    value: Any


class DeleteRequest(ObjRefRequest):
    api: Literal["del"]


class StatsRequest(BaseModel):
    api: Literal["stats"]


KernelRequest = Annotated[
    Union[
        LoadRequest,
        CreateRequest,
        InvokeRequest,
        StaticInvokeRequest,
        GetRequest,
        StaticGetRequest,
        SetRequest,
        StaticSetRequest,
        DeleteRequest,
        StatsRequest,
    ],
    Field(discriminator="api"),
]

_request_adapter: TypeAdapter[Any] = TypeAdapter(KernelRequest)


def parse_request(payload: Any) -> Any:
    """Validate a raw request object into one of the request models.

    Raises ProtocolError for anything that is not a well-formed request, so
    no partial dispatch ever happens.
    """
    if not isinstance(payload, dict):
        raise ProtocolError(f"Request must be a JSON object, got {type(payload).__name__}")
    try:
        return _request_adapter.validate_python(payload)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<request>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ProtocolError(f"Malformed request: {problems}") from exc


class ErrorInfo(BaseModel):
    message: str
    name: str
    stack: Optional[str] = None


class SuccessResponse(BaseModel):
    result: Any = None


class ErrorResponse(BaseModel):
    error: ErrorInfo

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error.model_dump(exclude_none=True)}
