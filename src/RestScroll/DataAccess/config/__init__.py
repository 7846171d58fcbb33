# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.config",
#   "purpose": "Public configuration API.",
#   "sections": [
#     {
#       "id": "load-config",
#       "name": "load_config",
#       "anchor": "function-load-config",
#       "kind": "function"
#     },
#     {
#       "id": "restscrollconfig",
#       "name": "RestScrollConfig",
#       "anchor": "class-restscrollconfig",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Data-access configuration package

Public API for loading and validating client configuration.

Example:
    from RestScroll.DataAccess.config import load_config

    config = load_config(
        path="restscroll.yaml",
        cli_overrides={"http": {"retry_attempts": 5}},
    )
"""

from .loader import export_config_schema, load_config
from .models import HttpClientConfig, LoggingConfig, RestScrollConfig, ScrollConfig

__all__ = [
    "RestScrollConfig",
    "HttpClientConfig",
    "ScrollConfig",
    "LoggingConfig",
    "load_config",
    "export_config_schema",
]
