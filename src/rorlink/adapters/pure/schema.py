"""Pure external-organisation response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

type LocaleMap = dict[str, str | None]


class PureBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PureTerm(PureBaseModel):
    uri: str | None = None
    term: dict[str, str | None] | None = None


class PureIdentifierType(PureBaseModel):
    uri: str
    term: dict[str, str | None] | None = None


class PureClassifiedId(PureBaseModel):
    type_discriminator: Literal["ClassifiedId"] = Field(alias="typeDiscriminator")
    id: str
    type: PureIdentifierType


class PureCountry(PureBaseModel):
    uri: str | None = None
    term: dict[str, str | None] | None = None


class PureAddress(PureBaseModel):
    city: str | None = None
    country: PureCountry | None = None


class PureWorkflow(PureBaseModel):
    step: str | None = None
    description: dict[str, str | None] | None = None


class PureExternalOrganization(PureBaseModel):
    uuid: str
    version: str
    name: LocaleMap | None = None
    type: PureTerm | None = None
    identifiers: list[dict[str, object]] = Field(default_factory=list)
    address: PureAddress | None = None
    workflow: PureWorkflow | None = None


class PureExternalOrganizationPage(PureBaseModel):
    count: int = 0
    items: list[PureExternalOrganization] = Field(default_factory=list)
