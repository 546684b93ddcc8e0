"""Resources — remote and local files described as servable values.

Handles download verification, content-derived serving paths and response
headers.
"""

from bundled.resources.constants import constant, reset_constants
from bundled.resources.identity import content_of, headers_of, path_of, route_path_of
from bundled.resources.local import LocalResource, read_file
from bundled.resources.remote import RemoteResource

__all__ = [
    "LocalResource",
    "RemoteResource",
    "constant",
    "content_of",
    "headers_of",
    "path_of",
    "read_file",
    "reset_constants",
    "route_path_of",
]
