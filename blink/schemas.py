"""Request and response bodies of the Solana Actions protocol."""

from typing import List, Literal, Optional

from pydantic import BaseModel


class ActionParameter(BaseModel):
    name: str
    label: Optional[str] = None
    type: Optional[str] = None
    required: Optional[bool] = None
    min: Optional[float] = None


class LinkedAction(BaseModel):
    type: Literal["transaction"] = "transaction"
    label: str
    href: str
    parameters: Optional[List[ActionParameter]] = None


class ActionLinks(BaseModel):
    actions: List[LinkedAction]


class ActionGetResponse(BaseModel):
    type: Literal["action"] = "action"
    title: str
    label: str
    description: str
    icon: str
    links: ActionLinks


class ActionPostRequest(BaseModel):
    account: Optional[str] = None


class ActionPostResponse(BaseModel):
    type: Literal["transaction"] = "transaction"
    transaction: str
    message: Optional[str] = None


class ActionError(BaseModel):
    error: str


class ActionRule(BaseModel):
    pathPattern: str
    apiPath: str


class ActionsManifest(BaseModel):
    rules: List[ActionRule]


class HealthCheckResponse(BaseModel):
    status: str
    rpc: bool
