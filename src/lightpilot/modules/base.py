"""
Module contract for lightpilot.

Modules sit on top of the profile store and talk to each other through the
event bus. The host owns persistence: it stores whatever dump_state returns
and hands it back to restore_state, and it stores module config dicts
stamped with a version so they can be migrated forward.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict

logger = logging.getLogger(__name__)


class UserModule(ABC):
    """
    Base class for per-user modules.

    A module subscribes to bus events in attach(), reads settings from the
    ProfileManager, and keeps any per-user runtime state to itself.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier for this module type."""

    @property
    @abstractmethod
    def CURRENT_CONFIG_VERSION(self) -> int:
        pass

    @abstractmethod
    def attach(self, bus, profiles) -> None:
        """
        Wire the module into the kernel.

        Args:
            bus: EventBus to subscribe and publish on
            profiles: ProfileManager holding user settings
        """

    @abstractmethod
    def default_config(self) -> Dict:
        """Default config dict, including its "version" key."""

    @abstractmethod
    def config_schema(self) -> Dict:
        """JSON-schema-like description UIs can render as a form."""

    def migrate_config(self, config: Dict) -> Dict:
        """
        Bring a stored config dict up to CURRENT_CONFIG_VERSION.

        Keys the stored dict lacks are taken from default_config(). A dict
        without a version is treated as version 1. Subclasses with real
        format changes override this and call super() last.

        Raises:
            ValueError: If the config was written by a newer version
        """
        version = config.get("version", 1)
        if version > self.CURRENT_CONFIG_VERSION:
            raise ValueError(
                f"{self.id} config version {version} is newer than "
                f"supported version {self.CURRENT_CONFIG_VERSION}"
            )
        if version < self.CURRENT_CONFIG_VERSION:
            logger.info(
                f"Migrating {self.id} config v{version} -> v{self.CURRENT_CONFIG_VERSION}"
            )

        migrated = {**self.default_config(), **config}
        migrated["version"] = self.CURRENT_CONFIG_VERSION
        return migrated

    def on_profile_changed(self, user_id: str) -> None:
        """Called when a user's profile is replaced or updated."""

    def dump_state(self) -> Dict:
        """Runtime state for the host to persist (JSON-serializable)."""
        return {}

    def restore_state(self, state: Dict) -> None:
        """Reload what dump_state returned; may be called before attach()."""
