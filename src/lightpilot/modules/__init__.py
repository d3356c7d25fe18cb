"""
Modules package for lightpilot.

Modules are plug-ins that add behavior on top of user profiles.
"""

from lightpilot.modules.base import UserModule

__all__ = ["UserModule"]
