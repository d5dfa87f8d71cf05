"""Mime type resolution for request and response bodies."""

from route_oas.constants import FORMAT_MIME_TYPES, MIME_JSON
from route_oas.declarations.route import Application, Route


def mime_for_format(fmt) -> str | None:
    if fmt is None:
        return None
    fmt = str(fmt)
    if "/" in fmt:
        return fmt
    return FORMAT_MIME_TYPES.get(fmt.lower())


def _route_content_types(route: Route):
    for source in (route.settings, route.options):
        for key in ("content_types", "content_type"):
            if source.get(key):
                return source[key]
    return None


def _select_by_format(content_types: dict, default_format) -> dict:
    if not default_format:
        return content_types
    selected = {k: v for k, v in content_types.items() if str(k).startswith(str(default_format))}
    return selected or content_types


def resolve_content_types(route: Route, app: Application | None = None) -> list[str]:
    """Mime types a route produces or consumes.

    Precedence: route content types, then the app's content types filtered
    by the default format, then the default format's own mime type, then JSON.
    """
    default_format = route.options.get("format") or route.settings.get("default_format")
    if default_format is None and app is not None:
        default_format = app.default_format

    content_types = _route_content_types(route)
    if content_types is None and app is not None and app.content_types:
        content_types = _select_by_format(app.content_types, default_format)

    mimes: list = []
    if isinstance(content_types, dict):
        mimes = list(_select_by_format(content_types, default_format).values())
    elif isinstance(content_types, str):
        mimes = [content_types]
    elif content_types:
        mimes = list(content_types)

    if not mimes and default_format:
        mimes = [default_format]

    resolved = []
    for mime in (mime_for_format(m) for m in mimes):
        if mime and mime not in resolved:
            resolved.append(mime)
    return resolved or [MIME_JSON]
