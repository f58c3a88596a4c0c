"""Resolve concrete URLs to the compiled route that owns them."""

from collections.abc import Iterable

from .route_compiler import CompiledRoute, normalize_path


def resolve_route(routes: Iterable[CompiledRoute], url: str) -> CompiledRoute | None:
    """Find the route matching a concrete URL.

    Routes are tried in declaration order and the first match wins, so
    ambiguous templates resolve deterministically.

    Returns:
        The owning route, or None if nothing matches
    """
    path = normalize_path(url)
    return next((route for route in routes if route.pattern.fullmatch(path)), None)


def match_params(route: CompiledRoute, url: str) -> dict[str, str] | None:
    """Extract path parameter values of a concrete URL for a route."""
    return route.match(normalize_path(url))
