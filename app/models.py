from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class TriggerContext(BaseModel):
    event_url: Optional[str] = None
    event_id: Optional[str] = None
    trigger_id: Optional[str] = None


class InterceptorRequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    body: str = ""
    header: Dict[str, List[str]] = Field(default_factory=dict)
    extensions: Dict[str, Any] = Field(default_factory=dict)
    interceptor_params: Dict[str, Any] = Field(default_factory=dict)
    context: TriggerContext = Field(default_factory=TriggerContext)


class StatusModel(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None


class InterceptorResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    continue_: bool = Field(alias="continue")
    status: StatusModel = Field(default_factory=StatusModel)
