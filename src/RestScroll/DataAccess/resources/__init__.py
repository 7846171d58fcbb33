# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.resources",
#   "purpose": "Resource-specific helpers over EntityClient.",
#   "sections": [
#     {
#       "id": "records",
#       "name": "records",
#       "anchor": "module-records",
#       "kind": "module"
#     },
#     {
#       "id": "drive",
#       "name": "drive",
#       "anchor": "module-drive",
#       "kind": "module"
#     }
#   ]
# }
# === /NAVMAP ===

"""Resource-specific helpers built on :class:`~RestScroll.DataAccess.client.EntityClient`.

Each submodule exposes plain async functions that take a client bound to the
resource's entity (``records`` or ``drive``) rather than subclassing it.
"""

from . import drive, records

__all__ = ["drive", "records"]
