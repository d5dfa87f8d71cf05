"""Structural checks for generated OpenAPI documents.

This is not a full OpenAPI schema validation. It catches the mistakes a
generator can make: missing top-level keys, dangling ``$ref``s,
operations without responses and undeclared path parameters.
"""

import re

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
TEMPLATE_PARAM = re.compile(r"\{([^}]+)\}")


def required_keys(doc: dict) -> tuple[str, ...]:
    if "swagger" in doc:
        return ("swagger", "info", "paths")
    return ("openapi", "info", "paths")


def validate_required_keys(doc: dict) -> dict[str, str]:
    """Check top-level and info keys.

    Returns dict of {location: error_message}.
    """
    errors = {}
    for key in required_keys(doc):
        if key not in doc:
            errors[key] = f"missing required key '{key}'"
    info = doc.get("info")
    if isinstance(info, dict):
        for key in ("title", "version"):
            if not info.get(key):
                errors[f"info.{key}"] = f"missing required key '{key}'"
    return errors


def resolve_pointer(doc: dict, ref: str):
    """Follow a local JSON pointer such as ``#/definitions/User``; None if it dangles."""
    if not ref.startswith("#/"):
        return None
    node = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _walk_refs(node, location: str):
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield location, ref
        for key, value in node.items():
            yield from _walk_refs(value, f"{location}.{key}" if location else str(key))
    elif isinstance(node, list):
        for i, value in enumerate(node):
            yield from _walk_refs(value, f"{location}[{i}]")


def validate_refs(doc: dict) -> dict[str, str]:
    errors = {}
    for location, ref in _walk_refs(doc, ""):
        if resolve_pointer(doc, ref) is None:
            errors[location] = f"unresolved $ref '{ref}'"
    return errors


def _operations(doc: dict):
    for template, item in (doc.get("paths") or {}).items():
        if not isinstance(item, dict):
            continue
        for method, operation in item.items():
            if method in HTTP_METHODS and isinstance(operation, dict):
                yield template, method, operation


def validate_responses(doc: dict) -> dict[str, str]:
    errors = {}
    for template, method, operation in _operations(doc):
        if not operation.get("responses"):
            errors[f"paths.{template}.{method}"] = "operation has no responses"
    return errors


def validate_path_params(doc: dict) -> dict[str, str]:
    """Every ``{name}`` in a template needs a required path parameter."""
    errors = {}
    for template, method, operation in _operations(doc):
        declared = {
            p.get("name"): p
            for p in operation.get("parameters") or []
            if isinstance(p, dict) and p.get("in") == "path"
        }
        for name in TEMPLATE_PARAM.findall(template):
            location = f"paths.{template}.{method}.parameters.{name}"
            if name not in declared:
                errors[location] = f"path parameter '{name}' is not declared"
            elif declared[name].get("required") is not True:
                errors[location] = f"path parameter '{name}' must be required"
    return errors


def validate_document(doc: dict) -> dict[str, str]:
    """Run all structural validations.

    Returns dict of {location: error_message}; empty when the document passes.
    """
    if not isinstance(doc, dict):
        return {"$": "document must be a mapping"}
    errors = {}
    errors.update(validate_required_keys(doc))
    errors.update(validate_refs(doc))
    errors.update(validate_responses(doc))
    errors.update(validate_path_params(doc))
    return errors
