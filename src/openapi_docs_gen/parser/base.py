"""Data models for parsed OpenAPI documents.

The loader turns every spec source into an ``OpenApiDocument``; the
normalizer turns each document's path entries into ``Operation`` models.
Both are frozen once built.
"""

from pydantic import BaseModel, ConfigDict, Field


class Param(BaseModel):
    """A single API parameter (query, path, header, or cookie)."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str  # query / path / header / cookie
    required: bool
    param_type: str  # string / integer / boolean / array / object
    description: str = ""
    constraints: dict = {}  # minimum, maximum, pattern, enum, etc.


class Info(BaseModel):
    """The top-level ``info`` block of a document."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    version: str = ""


class TagDef(BaseModel):
    """A tag declared in the document's top-level ``tags`` list."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class TagGroup(BaseModel):
    """An ``x-tagGroups`` entry: a named bundle of tags."""

    model_config = ConfigDict(frozen=True)

    name: str
    tags: list[str] = []


class OpenApiDocument(BaseModel):
    """A parsed (and possibly merged) OpenAPI document."""

    model_config = ConfigDict(frozen=True)

    source: str
    info: Info
    paths: dict[str, dict]  # {path: {method-or-"parameters": entry}}
    tags: list[TagDef] = []
    components: dict = {}
    tag_groups: list[TagGroup] = []
    external_docs_url: str | None = None
    group_key: str = ""


class Operation(BaseModel):
    """A single HTTP method + path entry."""

    model_config = ConfigDict(frozen=True)

    method: str  # get / post / put / delete / patch / ...
    path: str  # /api/users/{id}
    summary: str = ""
    description: str = ""
    operation_id: str = ""
    tags: list[str] = []
    parameters: list[Param] = []
    request_body: dict | None = None
    content_type: str = "application/json"
    responses: dict = {}  # {status_code: {description}}
    deprecated: bool = False
    raw: dict = Field(default_factory=dict, exclude=True)
