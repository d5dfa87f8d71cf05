"""Entry point: Application -> OpenAPI document dict."""

import logging

from route_oas.builders.api import ApiModelBuilder
from route_oas.config import load_options
from route_oas.declarations.route import Application
from route_oas.errors import UnsupportedSchemaVersionError
from route_oas.exporter.oas2 import OAS2Exporter
from route_oas.exporter.oas3 import OAS3Exporter
from route_oas.exporter.oas31 import OAS31Exporter
from route_oas.introspection.registry import BuildContext

logger = logging.getLogger(__name__)

SCHEMA_VERSIONS = {
    "2": "oas2",
    "2.0": "oas2",
    "oas2": "oas2",
    "swagger": "oas2",
    "3": "oas3",
    "3.0": "oas3",
    "oas3": "oas3",
    "oas30": "oas3",
    "3.1": "oas31",
    "oas31": "oas31",
}

EXPORTERS = {
    "oas2": OAS2Exporter,
    "oas3": OAS3Exporter,
    "oas31": OAS31Exporter,
}


def parse_schema_version(version) -> str:
    """Normalize the accepted spellings to oas2 / oas3 / oas31."""
    if isinstance(version, bool):
        raise UnsupportedSchemaVersionError(version)
    key = str(version).strip().lower()
    if key not in SCHEMA_VERSIONS:
        raise UnsupportedSchemaVersionError(version)
    return SCHEMA_VERSIONS[key]


def exporter_for(version):
    return EXPORTERS[parse_schema_version(version)]


def generate(app: Application, schema_version="3", **options) -> dict:
    """Build the OpenAPI document for app.

    Options are validated into GenerateOptions (title, version, host,
    base_path, servers, tags, security, namespace, models, ...).
    """
    exporter_class = exporter_for(schema_version)
    opts = load_options(**options)
    builder = ApiModelBuilder(opts, BuildContext())
    api = builder.add_app(app)
    logger.debug("Exporting %d paths with %s", len(api.paths), exporter_class.__name__)
    return exporter_class(api).generate()
