"""CLI entry point for openapi-docs-gen."""

import logging
import sys
from pathlib import Path

import click

from openapi_docs_gen.config import (
    DEFAULT_CONFIG_FILE,
    ApiConfig,
    OpenApiPluginConfig,
    SiteConfig,
    load_site_config,
    resolve_openapi_plugin,
    version_unit,
)
from openapi_docs_gen.errors import ConfigError, LoadError
from openapi_docs_gen.generator.docs import DocsGenerator
from openapi_docs_gen.generator.writer import WriteOutcome, WriteStatus

logger = logging.getLogger(__name__)

ALL = "all"


def configure_logging(level: int = logging.WARNING) -> None:
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


# -- helpers ------------------------------------------------------------------


def _resolve(config_path: Path, plugin_id: str | None) -> tuple[SiteConfig, OpenApiPluginConfig]:
    try:
        site = load_site_config(config_path)
        return site, resolve_openapi_plugin(site, plugin_id)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def _unit(plugin: OpenApiPluginConfig, unit_id: str) -> ApiConfig:
    if unit_id not in plugin.config:
        raise click.ClickException(f"ID '{unit_id}' does not exist in OpenAPI docs config.")
    return plugin.config[unit_id]


def _split_version_id(value: str) -> tuple[str, str]:
    parent_id, _, version_id = value.partition(":")
    if not parent_id or not version_id:
        raise click.ClickException(f"Expected <id:version>, got '{value}'.")
    return parent_id, version_id


def _versions(plugin: OpenApiPluginConfig, parent_id: str) -> tuple[ApiConfig, dict]:
    parent = _unit(plugin, parent_id)
    if not parent.versions:
        raise click.ClickException(f"ID '{parent_id}' does not define any versions.")
    if ALL in parent.versions:
        raise click.ClickException("Can't use id 'all' for OpenAPI docs versions configuration key.")
    return parent, parent.versions


def _report(outcomes: list[WriteOutcome]) -> None:
    for outcome in outcomes:
        if outcome.status is WriteStatus.CREATED:
            click.secho(f'Successfully created "{outcome.path}"', fg="green")
        elif outcome.status is WriteStatus.DELETED:
            click.secho(f'Cleanup succeeded for "{outcome.path}"', fg="green")
        elif outcome.status is WriteStatus.FAILED:
            click.secho(str(outcome.error), fg="red", err=True)
        else:
            logger.debug("skipped existing %s", outcome.path)


def _generate(generator: DocsGenerator, unit_id: str, unit: ApiConfig) -> bool:
    """Generate one unit and report; returns False if its spec failed to load."""
    try:
        report = generator.generate(unit)
    except LoadError as e:
        click.secho(f"[{unit_id}] {e}", fg="red", err=True)
        return False
    for warning in report.warnings:
        click.secho(f"[{unit_id}] {warning}", fg="yellow", err=True)
    _report(report.outcomes)
    return True


plugin_id_option = click.option("-p", "--plugin-id", default=None, help="OpenAPI docs plugin ID.")


# -- commands -----------------------------------------------------------------


@click.group()
@click.option(
    "-c", "--config", "config_path", default=DEFAULT_CONFIG_FILE,
    type=click.Path(path_type=Path), help="Site config YAML file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: Path, verbose: bool):
    """openapi-docs-gen — generate docs pages and sidebars from OpenAPI specs."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = config_path


@main.command("gen-api-docs")
@click.argument("unit_id", metavar="<id|all>")
@plugin_id_option
@click.pass_obj
def gen_api_docs(config_path: Path, unit_id: str, plugin_id: str | None):
    """Generate OpenAPI docs in MDX format and sidebar.js (if enabled)."""
    site, plugin = _resolve(config_path, plugin_id)
    generator = DocsGenerator(site, plugin.docs_plugin_id)

    if unit_id == ALL:
        if ALL in plugin.config:
            raise click.ClickException("Can't use id 'all' for OpenAPI docs configuration key.")
        for key, unit in plugin.config.items():
            _generate(generator, key, unit)
        return

    if not _generate(generator, unit_id, _unit(plugin, unit_id)):
        sys.exit(1)


@main.command("gen-api-docs:version")
@click.argument("version_spec", metavar="<id:version|id:all>")
@plugin_id_option
@click.pass_obj
def gen_api_docs_version(config_path: Path, version_spec: str, plugin_id: str | None):
    """Generate versioned OpenAPI docs, versions.json and sidebar.js (if enabled)."""
    site, plugin = _resolve(config_path, plugin_id)
    generator = DocsGenerator(site, plugin.docs_plugin_id)
    parent_id, version_id = _split_version_id(version_spec)
    parent, versions = _versions(plugin, parent_id)

    if version_id == ALL:
        _report(generator.write_versions(parent))
        for key, version in versions.items():
            _generate(generator, f"{parent_id}:{key}", version_unit(parent, version))
        return

    if version_id not in versions:
        raise click.ClickException(
            f"Version ID '{version_id}' does not exist in OpenAPI docs versions config."
        )
    _report(generator.write_versions(parent))
    if not _generate(generator, version_spec, version_unit(parent, versions[version_id])):
        sys.exit(1)


@main.command("clean-api-docs")
@click.argument("unit_id", metavar="<id|all>")
@plugin_id_option
@click.pass_obj
def clean_api_docs(config_path: Path, unit_id: str, plugin_id: str | None):
    """Clear the generated OpenAPI docs MDX files and sidebar.js."""
    site, plugin = _resolve(config_path, plugin_id)
    generator = DocsGenerator(site, plugin.docs_plugin_id)

    if unit_id == ALL:
        if ALL in plugin.config:
            raise click.ClickException("Can't use id 'all' for OpenAPI docs configuration key.")
        for unit in plugin.config.values():
            _report(generator.clean(unit))
        return

    _report(generator.clean(_unit(plugin, unit_id)))


@main.command("clean-api-docs:version")
@click.argument("version_spec", metavar="<id:version|id:all>")
@plugin_id_option
@click.pass_obj
def clean_api_docs_version(config_path: Path, version_spec: str, plugin_id: str | None):
    """Clear the versioned OpenAPI docs MDX files, versions.json and sidebar.js."""
    site, plugin = _resolve(config_path, plugin_id)
    generator = DocsGenerator(site, plugin.docs_plugin_id)
    parent_id, version_id = _split_version_id(version_spec)
    parent, versions = _versions(plugin, parent_id)

    if version_id == ALL:
        selected = list(versions.values())
    elif version_id in versions:
        selected = [versions[version_id]]
    else:
        raise click.ClickException(
            f"Version ID '{version_id}' does not exist in OpenAPI docs versions config."
        )

    _report(generator.clean_versions(parent))
    for version in selected:
        _report(generator.clean(version_unit(parent, version)))
