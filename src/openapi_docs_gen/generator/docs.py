"""Docs generator — runs the load/normalize/sidebar/emit pipeline per unit."""

import json
import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from openapi_docs_gen.config import (
    ApiConfig,
    DocsPluginConfig,
    NotFound,
    SiteConfig,
    doc_base_path,
    join_doc_path,
    resolve_docs_plugin,
    resolve_path,
)
from openapi_docs_gen.errors import ConfigError, LoadError
from openapi_docs_gen.generator.pages import PageEmitter, create_environment
from openapi_docs_gen.generator.sidebar import SidebarBuilder, dump_sidebar
from openapi_docs_gen.generator.writer import (
    WriteOutcome,
    clean_output_dir,
    delete_file,
    ensure_dir,
    write_if_absent,
)
from openapi_docs_gen.parser.base import OpenApiDocument
from openapi_docs_gen.parser.loader import is_url, load_documents
from openapi_docs_gen.parser.normalize import normalize_documents

logger = logging.getLogger(__name__)

SIDEBAR_FILE = "sidebar.js"
VERSIONS_FILE = "versions.json"


class VersionEntry(BaseModel):
    """One row of versions.json."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: str
    label: str
    base_url: str


@dataclass
class UnitReport:
    """Everything one unit's generation produced, for the caller to report."""

    outcomes: list[WriteOutcome] = field(default_factory=list)
    warnings: list[ConfigError] = field(default_factory=list)


class DocsGenerator:
    """Generates and cleans the configuration units of one plugin instance.

    Parsed documents are cached per spec location for the lifetime of the
    generator, i.e. one CLI invocation.
    """

    def __init__(self, site: SiteConfig, docs_plugin_id: str | None = None, timeout: float | None = None):
        self.site = site
        self.timeout = timeout
        self.docs: DocsPluginConfig | None = None
        if docs_plugin_id:
            resolved = resolve_docs_plugin(site, docs_plugin_id)
            if isinstance(resolved, NotFound):
                logger.warning("docs plugin %r not found; doc ids use the output dir", docs_plugin_id)
            else:
                self.docs = resolved
        self._documents: dict[str, list[OpenApiDocument]] = {}

    def spec_location(self, unit: ApiConfig) -> str:
        if is_url(unit.spec_path):
            return unit.spec_path
        return str(resolve_path(self.site, unit.spec_path))

    def load(self, unit: ApiConfig) -> list[OpenApiDocument]:
        """Load (or reuse) the documents of a unit. Raises LoadError."""
        location = self.spec_location(unit)
        if location not in self._documents:
            self._documents[location] = load_documents(location, timeout=self.timeout)
        return self._documents[location]

    # -- generation -----------------------------------------------------------

    def generate(self, unit: ApiConfig) -> UnitReport:
        """Generate pages (and sidebar.js when configured) for one unit.

        Load and template failures raise LoadError before anything is
        written; per-file failures are returned as outcomes.
        """
        documents = self.load(unit)
        try:
            records, tag_names = normalize_documents(documents)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise LoadError(self.spec_location(unit), f"cannot normalize document: {e}") from e
        output_dir = resolve_path(self.site, unit.output_dir)
        sidebar_options = unit.sidebar_options
        emitter = PageEmitter(
            output_dir,
            template=resolve_path(self.site, unit.template) if unit.template else None,
            category_link_source=sidebar_options.category_link_source if sidebar_options else None,
            info_base_path=self.info_base_path(unit),
            download_url=unit.download_url,
        )

        report = UnitReport()
        report.outcomes.append(ensure_dir(output_dir))

        if sidebar_options is not None:
            builder = SidebarBuilder(sidebar_options, base_path=self.doc_base_path(unit))
            tree = builder.build(records, tag_names)
            report.warnings.extend(builder.errors)
            content = create_environment().get_template("sidebar.js.j2").render(slice=dump_sidebar(tree))
            report.outcomes.append(write_if_absent(output_dir / SIDEBAR_FILE, content))

        report.outcomes.extend(emitter.emit(records))
        return report

    def doc_base_path(self, unit: ApiConfig) -> str:
        return doc_base_path(unit.output_dir, self.docs.path if self.docs else None)

    def info_base_path(self, unit: ApiConfig) -> str:
        """Route prefix of info pages, as referenced from api pages."""
        if self.docs and self.docs.route_base_path is not None:
            return join_doc_path(self.docs.route_base_path, self.doc_base_path(unit))
        return unit.output_dir

    # -- cleanup --------------------------------------------------------------

    def clean(self, unit: ApiConfig) -> list[WriteOutcome]:
        return clean_output_dir(resolve_path(self.site, unit.output_dir))

    # -- versions -------------------------------------------------------------

    def write_versions(self, unit: ApiConfig) -> list[WriteOutcome]:
        """Write the parent unit's versions.json manifest."""
        output_dir = resolve_path(self.site, unit.output_dir)
        manifest = json.dumps(
            [entry.model_dump(by_alias=True) for entry in version_entries(unit)], indent=2
        )
        return [ensure_dir(output_dir), write_if_absent(output_dir / VERSIONS_FILE, manifest + "\n")]

    def clean_versions(self, unit: ApiConfig) -> list[WriteOutcome]:
        path = resolve_path(self.site, unit.output_dir) / VERSIONS_FILE
        if not path.is_file():
            return []
        return [delete_file(path)]


def version_entries(unit: ApiConfig) -> list[VersionEntry]:
    """Parent version first (when it has one), then ``versions`` in order.

    A ``versions`` key equal to the parent version replaces the parent
    entry in place.
    """
    entries: dict[str, VersionEntry] = {}
    if unit.version:
        entries[unit.version] = VersionEntry(
            version=unit.version, label=unit.label or unit.version, base_url=unit.base_url or ""
        )
    for key, version in (unit.versions or {}).items():
        entries[key] = VersionEntry(version=key, label=version.label or key, base_url=version.base_url or "")
    return list(entries.values())
