"""CLI entry point for route-oas."""

import json
import logging
from pathlib import Path

import click
import yaml

from route_oas.builders.api import import_reference
from route_oas.declarations.route import Application
from route_oas.errors import RouteOasError
from route_oas.generator import generate
from route_oas.validator import validate_document

OAS_CHOICES = ["2", "3", "3.1"]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_app(app_ref: str) -> Application:
    if ":" not in app_ref:
        raise click.BadParameter("expected 'module:attr'", param_hint="APP_REF")
    app = import_reference(app_ref)
    if not isinstance(app, Application):
        raise click.BadParameter(f"{app_ref} is a {type(app).__name__}, not an Application", param_hint="APP_REF")
    return app


def _dump(doc: dict, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)
    return json.dumps(doc, indent=2, ensure_ascii=False) + "\n"


@click.group()
def main():
    """route-oas — generate OpenAPI documents from route declarations."""
    pass


@main.command("generate")
@click.argument("app_ref")
@click.option("--oas", "oas_version", default="3", type=click.Choice(OAS_CHOICES), help="OpenAPI version.")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "yaml"]), help="Output format.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file (default: stdout).")
@click.option("--title", default=None, help="API title.")
@click.option("--api-version", default=None, help="API version string.")
@click.option("--namespace", default=None, help="Only document routes under this namespace.")
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
def generate_cmd(app_ref: str, oas_version: str, fmt: str, output: Path | None, title, api_version, namespace, verbose: bool):
    """Generate an OpenAPI document for APP_REF (module:attr)."""
    _configure_logging(verbose)
    options = {"title": title, "version": api_version, "namespace": namespace}
    options = {k: v for k, v in options.items() if v is not None}
    try:
        doc = generate(_load_app(app_ref), schema_version=oas_version, **options)
    except RouteOasError as e:
        raise click.ClickException(str(e)) from e

    text = _dump(doc, fmt)
    if output is None:
        click.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"OpenAPI {oas_version} document saved to {output}", err=True)


@main.command("validate")
@click.argument("app_ref")
@click.option("--oas", "oas_version", default="3", type=click.Choice(OAS_CHOICES), help="OpenAPI version.")
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
def validate_cmd(app_ref: str, oas_version: str, verbose: bool):
    """Generate the document for APP_REF and check its structure."""
    _configure_logging(verbose)
    try:
        doc = generate(_load_app(app_ref), schema_version=oas_version)
    except RouteOasError as e:
        raise click.ClickException(str(e)) from e

    errors = validate_document(doc)
    if errors:
        for location, message in errors.items():
            click.echo(f"  {location}: {message}", err=True)
        raise click.ClickException(f"{len(errors)} validation error(s)")
    click.echo(f"OK: {len(doc.get('paths', {}))} paths, no structural errors.")
