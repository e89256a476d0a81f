"""Data model for adaptive card invocations and results."""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_enum(enum_cls: type, value: Any) -> Any:
    """Accept enum values case-insensitively, ignoring `_`/`-` separators."""
    if isinstance(value, str):
        wanted = value.replace("_", "").replace("-", "").lower()
        for member in enum_cls:
            if member.value.lower() == wanted:
                return member
    return value


class CardSource(str, Enum):
    inline = "inline"
    asset = "asset"
    catalog = "catalog"


class InvocationMode(str, Enum):
    render = "render"
    validate = "validate"
    render_and_validate = "renderAndValidate"


class ValidationMode(str, Enum):
    off = "off"
    warn = "warn"
    error = "error"


class CardInteractionType(str, Enum):
    submit = "Submit"
    execute = "Execute"
    open_url = "OpenUrl"
    show_card = "ShowCard"
    toggle_visibility = "ToggleVisibility"


class CardSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inline_json: Optional[Any] = Field(default=None, alias="inlineJson")
    asset_path: Optional[str] = Field(default=None, alias="assetPath")
    catalog_name: Optional[str] = Field(default=None, alias="catalogName")
    template_params: Optional[Any] = Field(default=None, alias="templateParams")
    asset_registry: Optional[Dict[str, str]] = Field(default=None, alias="assetRegistry")


class CardInteraction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enabled: Optional[bool] = None
    interaction_type: CardInteractionType = Field(default=CardInteractionType.submit, alias="interactionType")
    action_id: str = Field(default="", alias="actionId")
    verb: Optional[str] = None
    raw_inputs: Any = Field(default=None, alias="rawInputs")
    card_instance_id: str = Field(default="", alias="cardInstanceId")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("interaction_type", mode="before")
    @classmethod
    def _interaction_type(cls, value: Any) -> Any:
        return _coerce_enum(CardInteractionType, value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class CardInvocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    card_source: CardSource = Field(default=CardSource.inline, alias="cardSource")
    card_spec: CardSpec = Field(default_factory=CardSpec, alias="cardSpec")
    node_id: Optional[str] = Field(default=None, alias="nodeId")
    payload: Any = None
    session: Any = None
    state: Optional[Dict[str, Any]] = None
    interaction: Optional[CardInteraction] = None
    mode: InvocationMode = InvocationMode.render_and_validate
    validation_mode: ValidationMode = Field(default=ValidationMode.warn, alias="validationMode")
    # Opaque host metadata, passed through untouched.
    envelope: Optional[Dict[str, Any]] = None

    @field_validator("card_source", mode="before")
    @classmethod
    def _card_source(cls, value: Any) -> Any:
        return _coerce_enum(CardSource, value)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> Any:
        return _coerce_enum(InvocationMode, value)

    @field_validator("validation_mode", mode="before")
    @classmethod
    def _validation_mode(cls, value: Any) -> Any:
        return _coerce_enum(ValidationMode, value)


class SetOp(BaseModel):
    op: Literal["set"] = "set"
    path: str
    value: Any = None


class MergeOp(BaseModel):
    op: Literal["merge"] = "merge"
    path: str
    value: Any = None


class DeleteOp(BaseModel):
    op: Literal["delete"] = "delete"
    path: str


StateUpdateOp = Annotated[Union[SetOp, MergeOp, DeleteOp], Field(discriminator="op")]


class SetRoute(BaseModel):
    op: Literal["set_route"] = "set_route"
    route: str


class SetAttribute(BaseModel):
    op: Literal["set_attribute"] = "set_attribute"
    key: str
    value: Any = None


class DeleteAttribute(BaseModel):
    op: Literal["delete_attribute"] = "delete_attribute"
    key: str


class PushCardStack(BaseModel):
    op: Literal["push_card_stack"] = "push_card_stack"
    card_id: str


class PopCardStack(BaseModel):
    op: Literal["pop_card_stack"] = "pop_card_stack"


SessionUpdateOp = Annotated[
    Union[SetRoute, SetAttribute, DeleteAttribute, PushCardStack, PopCardStack],
    Field(discriminator="op"),
]


class ActionEvent(BaseModel):
    action_type: CardInteractionType
    action_id: str
    verb: Optional[str] = None
    route: Optional[str] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)
    card_id: str
    card_instance_id: str
    subcard_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class FeatureSummary(BaseModel):
    version: Optional[str] = None
    used_elements: List[str] = Field(default_factory=list)
    used_actions: List[str] = Field(default_factory=list)
    uses_show_card: bool = False
    uses_toggle_visibility: bool = False
    uses_media: bool = False
    uses_auth: bool = False
    requires_features: Dict[str, Any] = Field(default_factory=dict)


class ValidationIssue(BaseModel):
    code: str
    message: str
    path: str


class AssetResolution(BaseModel):
    mode: str
    resolved: Optional[str] = None
    hash: Optional[str] = None


class BindingSummary(BaseModel):
    template_expansions: int = 0
    placeholder_replacements: int = 0
    expression_evaluations: int = 0
    missing_paths: int = 0


class TelemetryEvent(BaseModel):
    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class CardResult(BaseModel):
    rendered_card: Optional[Any] = None
    event: Optional[ActionEvent] = None
    state_updates: List[StateUpdateOp] = Field(default_factory=list)
    session_updates: List[SessionUpdateOp] = Field(default_factory=list)
    card_features: FeatureSummary = Field(default_factory=FeatureSummary)
    validation_issues: List[ValidationIssue] = Field(default_factory=list)
    telemetry_events: List[TelemetryEvent] = Field(default_factory=list)
