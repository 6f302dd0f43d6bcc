"""Site configuration models and plugin resolution.

The site config is a YAML file mirroring a docs-site generator's
``presets``/``plugins`` lists. Resolution functions take the parsed
``SiteConfig`` as a value; there is no global configuration object.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from openapi_docs_gen.errors import ConfigError

OPENAPI_PLUGIN_NAME = "docusaurus-plugin-openapi-docs"
DOCS_PLUGIN_NAME = "@docusaurus/plugin-content-docs"
DEFAULT_CONFIG_FILE = "site.yaml"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SidebarOptions(_CamelModel):
    """How the sidebar slice of one configuration unit is built."""

    group_paths_by: Literal["tag", "tagGroup", "flat"] = "tag"
    category_link_source: Literal["tag", "info", "api"] | None = None
    sidebar_collapsible: bool = True
    sidebar_collapsed: bool = True
    custom_props: dict | None = None
    sort: Literal["spec", "alpha"] = "spec"
    tag_order: list[str] | None = None
    nest_by_path: bool = False


class VersionConfig(_CamelModel):
    """One entry of a unit's ``versions`` mapping; overlays the parent unit."""

    model_config = ConfigDict(extra="allow")

    spec_path: str | None = None
    output_dir: str | None = None
    label: str | None = None
    base_url: str | None = None


class ApiConfig(_CamelModel):
    """A configuration unit: one spec-to-docs generation job."""

    spec_path: str
    output_dir: str
    template: str | None = None
    download_url: str | None = None
    sidebar_options: SidebarOptions | None = None
    version: str | None = None
    label: str | None = None
    base_url: str | None = None
    versions: dict[str, VersionConfig] | None = None


class OpenApiPluginConfig(_CamelModel):
    id: str = "default"
    docs_plugin_id: str = "classic"
    config: dict[str, ApiConfig] = {}


class DocsPluginConfig(_CamelModel):
    """The subset of a docs plugin's options needed to compute doc paths."""

    id: str = "default"
    path: str = "docs"
    route_base_path: str | None = None


class SiteConfig(BaseModel):
    site_dir: Path = Path(".")
    presets: list[tuple[str, dict]] = []
    plugins: list[tuple[str, dict]] = []


@dataclass(frozen=True)
class NotFound:
    """Typed "no such plugin" result."""

    plugin_id: str


def load_site_config(config_path: Path) -> SiteConfig:
    """Read the YAML site config; its directory becomes the site dir."""
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f'Cannot read site config "{config_path}": {e}') from e

    try:
        return SiteConfig(
            site_dir=config_path.resolve().parent,
            presets=[_as_entry(p) for p in data.get("presets") or []],
            plugins=[_as_entry(p) for p in data.get("plugins") or []],
        )
    except ValidationError as e:
        raise ConfigError(f'Invalid site config "{config_path}": {e}') from e


def _as_entry(entry) -> tuple[str, dict]:
    """Normalize ``name`` or ``[name, options]`` into a (name, options) pair."""
    if isinstance(entry, str):
        return entry, {}
    if isinstance(entry, (list, tuple)) and entry:
        return str(entry[0]), (dict(entry[1]) if len(entry) > 1 and entry[1] else {})
    raise ConfigError(f"Invalid preset/plugin entry: {entry!r}")


# -- resolution ---------------------------------------------------------------


def resolve_docs_plugin(site: SiteConfig, plugin_id: str) -> DocsPluginConfig | NotFound:
    """Find the docs options for ``plugin_id`` among presets and docs plugins.

    A preset named ``plugin_id`` contributes its ``docs`` mapping; a docs
    plugin instance matches on its ``id`` (``"default"`` when unset).
    """
    for name, options in [*site.presets, *site.plugins]:
        if name == plugin_id:
            return DocsPluginConfig.model_validate(options.get("docs") or {})
        if name == DOCS_PLUGIN_NAME and options.get("id", "default") == plugin_id:
            return DocsPluginConfig.model_validate(options)
    return NotFound(plugin_id)


def openapi_plugin_instances(site: SiteConfig) -> list[OpenApiPluginConfig]:
    try:
        return [
            OpenApiPluginConfig.model_validate(options)
            for name, options in site.plugins
            if name == OPENAPI_PLUGIN_NAME
        ]
    except ValidationError as e:
        raise ConfigError(f"Invalid OpenAPI docs plugin options: {e}") from e


def resolve_openapi_plugin(site: SiteConfig, plugin_id: str | None = None) -> OpenApiPluginConfig:
    """Pick the OpenAPI docs plugin instance to operate on."""
    instances = openapi_plugin_instances(site)
    if plugin_id:
        for instance in instances:
            if instance.id == plugin_id:
                return instance
        raise ConfigError(f"OpenAPI docs plugin ID '{plugin_id}' not found.")

    if not instances:
        raise ConfigError("No OpenAPI docs plugin instance is configured.")
    if len(instances) > 1:
        raise ConfigError(
            "OpenAPI docs plugin ID must be specified when more than one plugin instance exists."
        )
    return instances[0]


def resolve_path(site: SiteConfig, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else site.site_dir / path


# -- versions -----------------------------------------------------------------


def version_unit(parent: ApiConfig, version: VersionConfig) -> ApiConfig:
    """Overlay a version's keys on its parent unit (version keys win)."""
    base = parent.model_dump(
        by_alias=True, exclude={"versions", "version", "label", "base_url"}, exclude_none=True
    )
    overlay = version.model_dump(by_alias=True, exclude_none=True)
    return ApiConfig.model_validate({**base, **overlay})


# -- doc paths ----------------------------------------------------------------


def doc_base_path(output_dir: str, docs_path: str | None) -> str:
    """Output dir relative to the docs plugin path, used to prefix doc ids.

    Without a known docs path the first path segment is dropped instead.
    """
    output_dir = output_dir.replace("\\", "/").strip("/")
    docs_path = (docs_path or "").strip("/")
    if docs_path:
        _, found, rest = output_dir.partition(docs_path)
        if found:
            return rest.strip("/")
    parts = output_dir.split("/", 1)
    return parts[1] if len(parts) > 1 else ""


def join_doc_path(*parts: str | None) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))
