"""Sidebar builder — turns normalized records into a navigation tree.

The tree opens with the info pages, then holds one category per tag (or
per ``x-tagGroups`` group), with untagged operations collected last.
"""

import json
import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from openapi_docs_gen.config import SidebarOptions, join_doc_path
from openapi_docs_gen.errors import ConfigError
from openapi_docs_gen.parser.records import ApiRecord, InfoRecord, NormalizedRecord, TagRecord

logger = logging.getLogger(__name__)

UNTAGGED_LABEL = "Untagged"


class _Node(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocNode(_Node):
    type: Literal["doc"] = "doc"
    id: str
    label: str
    class_name: str | None = None


class LinkNode(_Node):
    type: Literal["link"] = "link"
    label: str
    href: str


class CategoryNode(_Node):
    type: Literal["category"] = "category"
    label: str
    collapsible: bool = True
    collapsed: bool = True
    link: dict | None = None
    custom_props: dict | None = None
    items: list["SidebarNode"] = []


SidebarNode = Annotated[Union[CategoryNode, DocNode, LinkNode], Field(discriminator="type")]

CategoryNode.model_rebuild()


def dump_sidebar(items: list[SidebarNode]) -> str:
    """Serialize a tree to the JSON literal embedded in sidebar.js."""
    return json.dumps([item.model_dump(by_alias=True, exclude_none=True) for item in items])


class SidebarBuilder:
    """Builds the sidebar slice of one configuration unit.

    Misconfigurations do not abort the build: they are collected in
    ``errors`` as ConfigError and a fallback is applied.
    """

    def __init__(self, options: SidebarOptions, base_path: str = ""):
        self.options = options
        self.base_path = base_path
        self.errors: list[ConfigError] = []

    def build(self, records: list[NormalizedRecord], tag_names: list[str]) -> list[SidebarNode]:
        self.errors = []
        infos = [r for r in records if r.type == "info" and r.id]
        apis = [r for r in records if r.type == "api" and r.id]
        skipped = sum(1 for r in records if r.type == "api" and not r.id)
        if skipped:
            logger.warning("%d operation(s) without an id left out of the sidebar", skipped)

        tag_records: dict[str, TagRecord] = {}
        for r in records:
            if r.type == "tag" and r.id:
                tag_records.setdefault(r.name, r)

        items: list[SidebarNode] = [self._intro(info) for info in infos]
        items.extend(
            LinkNode(label="External documentation", href=info.external_docs_url)
            for info in infos if info.external_docs_url
        )

        if self.options.group_paths_by == "flat":
            ordered = apis
            if self.options.sort == "alpha":
                ordered = sorted(apis, key=lambda a: a.title.lower())
            items.extend(self._doc(a) for a in ordered)
            return items

        tag_order, missing = self._ordered_tags(tag_names)
        if self.options.group_paths_by == "tagGroup":
            items.extend(self._group_categories(infos, tag_order, apis, tag_records))
        else:
            for tag in tag_order:
                category = self._tag_category(tag, apis, tag_records)
                if category:
                    items.append(category)

        for tag in missing:
            items.append(self._category(tag, [], link=None))

        untagged = [a for a in apis if not a.operation.tags]
        if untagged:
            items.append(self._category(UNTAGGED_LABEL, self._api_items(untagged), link=None))
        return items

    # -- ordering -------------------------------------------------------------

    def _ordered_tags(self, tag_names: list[str]) -> tuple[list[str], list[str]]:
        """Return (ordered known tags, explicitly ordered tags that do not exist)."""
        explicit = self.options.tag_order
        if explicit:
            listed = [t for t in dict.fromkeys(explicit) if t in tag_names]
            missing = [t for t in dict.fromkeys(explicit) if t not in tag_names]
            for tag in missing:
                self.errors.append(
                    ConfigError(f'Tag "{tag}" in tagOrder is not defined in the spec; appended at the end.')
                )
            return listed + [t for t in tag_names if t not in listed], missing

        if self.options.sort == "alpha":
            return sorted(tag_names, key=str.lower), []
        return list(tag_names), []

    # -- categories -----------------------------------------------------------

    def _group_categories(self, infos, tag_order, apis, tag_records) -> list[SidebarNode]:
        groups = {}
        for info in infos:
            for group in info.tag_groups:
                groups.setdefault(group.name, group)

        items: list[SidebarNode] = []
        grouped: set[str] = set()
        for group in groups.values():
            children = []
            for tag in group.tags:
                if tag not in tag_order:
                    self.errors.append(
                        ConfigError(f'Tag "{tag}" in x-tagGroups "{group.name}" is not defined in the spec.')
                    )
                    continue
                grouped.add(tag)
                category = self._tag_category(tag, apis, tag_records)
                if category:
                    children.append(category)
            if children:
                items.append(self._category(group.name, children, link=None))

        for tag in tag_order:
            if tag not in grouped:
                category = self._tag_category(tag, apis, tag_records)
                if category:
                    items.append(category)
        return items

    def _tag_category(self, tag: str, apis: list[ApiRecord], tag_records: dict[str, TagRecord]) -> CategoryNode | None:
        tagged = [a for a in apis if tag in a.operation.tags]
        if not tagged:
            return None
        return self._category(tag, self._api_items(tagged), link=self._category_link(tag_records.get(tag), tagged))

    def _category_link(self, tag: TagRecord | None, tagged: list[ApiRecord]) -> dict | None:
        source = self.options.category_link_source
        if source == "tag" and tag is not None:
            target = tag.id
        elif source == "info":
            target = tagged[0].info_id
        elif source == "api":
            target = tagged[0].id
        else:
            return None
        if not target:
            return None
        return {"type": "doc", "id": self._doc_id(target)}

    def _category(self, label: str, items: list[SidebarNode], link: dict | None) -> CategoryNode:
        return CategoryNode(
            label=label,
            collapsible=self.options.sidebar_collapsible,
            collapsed=self.options.sidebar_collapsed,
            link=link,
            custom_props=self.options.custom_props,
            items=items,
        )

    # -- items ----------------------------------------------------------------

    def _api_items(self, apis: list[ApiRecord]) -> list[SidebarNode]:
        if self.options.nest_by_path:
            return self._nest(apis, 0)
        return [self._doc(a) for a in apis]

    def _nest(self, apis: list[ApiRecord], depth: int) -> list[SidebarNode]:
        """Group by the path segment at ``depth`` until a group holds one operation."""
        groups: dict[str | None, list[ApiRecord]] = {}
        for api in apis:
            segments = [s for s in api.operation.path.split("/") if s]
            key = segments[depth] if depth < len(segments) else None
            groups.setdefault(key, []).append(api)

        # A prefix shared by every operation adds no information; descend.
        if len(groups) == 1 and None not in groups and len(apis) > 1:
            return self._nest(apis, depth + 1)

        items: list[SidebarNode] = []
        for segment, members in groups.items():
            if segment is None:
                items.extend(self._doc(a) for a in members)
            elif len(members) == 1:
                items.append(self._doc(members[0]))
            else:
                items.append(self._category(segment, self._nest(members, depth + 1), link=None))
        return items

    def _intro(self, info: InfoRecord) -> DocNode:
        return DocNode(id=self._doc_id(info.id), label=info.title, class_name="api-info")

    def _doc(self, api: ApiRecord) -> DocNode:
        class_name = f"api-method {api.operation.method}"
        if api.deprecated:
            class_name = f"menu__list-item--deprecated {class_name}"
        return DocNode(id=self._doc_id(api.id), label=api.title, class_name=class_name)

    def _doc_id(self, record_id: str) -> str:
        return join_doc_path(self.base_path, record_id)
