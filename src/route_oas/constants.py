"""Shared constants: schema type names, mime types and defaults."""

import datetime
import decimal
import io
import uuid

STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
OBJECT = "object"
ARRAY = "array"
FILE = "file"

SCHEMA_TYPES = (STRING, INTEGER, NUMBER, BOOLEAN, OBJECT, ARRAY, FILE)

MIME_JSON = "application/json"
MIME_XML = "application/xml"
MIME_FORM = "application/x-www-form-urlencoded"
MIME_MULTIPART = "multipart/form-data"

# format name -> mime type, used when a route only declares a format
FORMAT_MIME_TYPES = {
    "json": MIME_JSON,
    "xml": MIME_XML,
    "txt": "text/plain",
    "text": "text/plain",
    "html": "text/html",
    "binary": "application/octet-stream",
    "serializable_hash": MIME_JSON,
    "form": MIME_FORM,
    "multipart": MIME_MULTIPART,
}

DEFAULT_LICENSE_NAME = "Proprietary"
DEFAULT_LICENSE_URL = "https://example.com/license"
DEFAULT_SERVER_URL = "https://api.example.com"

BODYLESS_METHODS = ("get", "head", "delete")

# Python classes -> schema types. str is the fallback and is listed for clarity.
PYTHON_TYPE_MAPPING = {
    str: STRING,
    int: INTEGER,
    float: NUMBER,
    decimal.Decimal: NUMBER,
    bool: BOOLEAN,
    list: ARRAY,
    tuple: ARRAY,
    set: ARRAY,
    dict: OBJECT,
    bytes: FILE,
    io.IOBase: FILE,
    datetime.date: STRING,
    datetime.datetime: STRING,
    uuid.UUID: STRING,
}

# Formats implied by a Python class, applied when no explicit format is given.
PYTHON_TYPE_FORMATS = {
    datetime.datetime: "date-time",
    datetime.date: "date",
    uuid.UUID: "uuid",
}

# Lower-cased type names -> schema types.
PRIMITIVE_TYPE_MAPPING = {
    "str": STRING,
    "string": STRING,
    "int": INTEGER,
    "integer": INTEGER,
    "long": INTEGER,
    "float": NUMBER,
    "double": NUMBER,
    "decimal": NUMBER,
    "bigdecimal": NUMBER,
    "number": NUMBER,
    "bool": BOOLEAN,
    "boolean": BOOLEAN,
    "list": ARRAY,
    "array": ARRAY,
    "dict": OBJECT,
    "hash": OBJECT,
    "object": OBJECT,
    "file": FILE,
    "bytes": FILE,
}


def primitive_type(name) -> str | None:
    """Resolve a type name such as "Integer" or "bool" to a schema type."""
    if name is None:
        return None
    return PRIMITIVE_TYPE_MAPPING.get(str(name).lower())
