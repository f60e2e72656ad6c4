"""CLI command modules.

Command Groups:
- uxp: Universal Crossplane release install, upgrade and removal
"""

from .uxp import uxp_app

__all__ = [
    "uxp_app",
]
