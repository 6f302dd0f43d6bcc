"""Normalized page records.

A generation run flattens its documents into an ordered list of
``NormalizedRecord``: one ``info`` page per document, one ``api`` page
per operation and one ``tag`` page per tag.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .base import Info, Operation, TagGroup


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""


class ApiRecord(_Record):
    type: Literal["api"] = "api"
    operation: Operation
    info_id: str
    sort_key: str

    @property
    def deprecated(self) -> bool:
        return self.operation.deprecated


class InfoRecord(_Record):
    type: Literal["info"] = "info"
    info: Info
    tags: list[str] = []
    tag_groups: list[TagGroup] = []
    external_docs_url: str | None = None


class TagRecord(_Record):
    type: Literal["tag"] = "tag"
    name: str
    api_ids: list[str] = []


NormalizedRecord = Annotated[
    Union[ApiRecord, InfoRecord, TagRecord], Field(discriminator="type")
]
