"""Bundled — integrity-verified, content-addressed web resources.

Pin third-party scripts by SHA-256, serve local bundles at cache-busting
URLs, and keep them fresh while you develop.

Quick start::

    from bundled import LocalResource, RemoteResource, ResourceRouter, path_of

    plotly = RemoteResource.fetch(
        "https://cdn.jsdelivr.net/npm/plotly.js@2.26.2/dist/plotly.min.js",
        sha256="bf56aa89e1d4df155b43b9192f2fd85dfb0e6279e05c025e6090d8503d004608",
    )
    styles = LocalResource("web/dist", "output.css")

    router = ResourceRouter([plotly, styles], live=True)
    router.get(path_of(plotly)).status   # 200

Two modes::

    ResourceRouter(resources)              # Frozen: built once (production)
    ResourceRouter(resources, live=True)   # Rebuilt when source files change

During development ``watch()`` runs ``bun build --watch`` and calls back
after every rebuild.

"""

__version__ = "0.1.0.dev0"
__all__ = [
    "BundledConfig",
    "ContentStore",
    "LocalResource",
    "RemoteResource",
    "ResourceMiddleware",
    "ResourceRouter",
    "__version__",
    "bun_build",
    "constant",
    "path_of",
    "watch",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import bundled`` fast; httpx is only loaded on first use.
    """
    if name == "BundledConfig":
        from bundled.config import BundledConfig

        return BundledConfig

    if name == "ContentStore":
        from bundled.store import ContentStore

        return ContentStore

    if name in {"LocalResource", "RemoteResource", "constant", "path_of"}:
        from bundled import resources

        return getattr(resources, name)

    if name in {"ResourceMiddleware", "ResourceRouter"}:
        from bundled import routing

        return getattr(routing, name)

    if name in {"bun_build", "watch"}:
        from bundled import build

        return getattr(build, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
