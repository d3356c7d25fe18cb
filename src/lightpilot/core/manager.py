"""
ProfileManager for user profile storage and lookup.

The ProfileManager owns the profiles, not the behavior.
"""

import logging
import threading
from dataclasses import fields
from datetime import datetime
from typing import Any, Dict, List, Optional

from lightpilot.core.profile import UserProfile

logger = logging.getLogger(__name__)


class ProfileManager:
    """
    Manages user profiles and per-user module configuration.

    Responsibilities:
    - Store profiles keyed by user ID
    - Apply partial updates
    - Record when each user's weekly schedule was last generated
    - Store per-user module config

    Does NOT implement scheduling, learning, or compliance logic.
    """

    def __init__(self) -> None:
        """Initialize an empty profile manager."""
        self._profiles: Dict[str, UserProfile] = {}
        self._module_configs: Dict[str, Dict[str, Dict]] = {}
        self._lock = threading.Lock()

    def add_profile(self, profile: UserProfile) -> UserProfile:
        """
        Register a profile.

        Args:
            profile: The profile to add

        Returns:
            The stored profile

        Raises:
            ValueError: If a profile with the same ID already exists
        """
        with self._lock:
            if profile.id in self._profiles:
                raise ValueError(f"Profile with id '{profile.id}' already exists")
            self._profiles[profile.id] = profile
        logger.info(f"Added profile: {profile.id}")
        return profile

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """
        Get a profile by user ID.

        Args:
            user_id: The user ID

        Returns:
            UserProfile or None if not found
        """
        return self._profiles.get(user_id)

    def all_profiles(self) -> List[UserProfile]:
        """Get all profiles."""
        return list(self._profiles.values())

    def update_profile(self, user_id: str, **changes: Any) -> UserProfile:
        """
        Update fields on an existing profile.

        Args:
            user_id: The user ID
            **changes: Field names and new values

        Returns:
            The updated profile

        Raises:
            ValueError: If the profile doesn't exist or a field is unknown
        """
        valid = {f.name for f in fields(UserProfile)} - {"id"}
        unknown = set(changes) - valid
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        with self._lock:
            profile = self._profiles.get(user_id)
            if not profile:
                raise ValueError(f"Profile '{user_id}' does not exist")
            for name, value in changes.items():
                setattr(profile, name, value)

        logger.debug(f"Updated profile {user_id}: {sorted(changes)}")
        return profile

    def mark_schedule_generated(self, user_id: str, when: datetime) -> None:
        """
        Record that the weekly schedule was generated.

        Args:
            user_id: The user ID
            when: Generation timestamp

        Raises:
            ValueError: If the profile doesn't exist
        """
        self.update_profile(user_id, last_schedule_generated=when)
        logger.debug(f"Marked schedule generated for {user_id} at {when.isoformat()}")

    def remove_profile(self, user_id: str) -> bool:
        """
        Remove a profile and its module configuration.

        Returns:
            True if the profile was removed, False if not found
        """
        with self._lock:
            removed = self._profiles.pop(user_id, None)
            self._module_configs.pop(user_id, None)
        if removed:
            logger.info(f"Removed profile: {user_id}")
        return removed is not None

    def set_module_config(self, user_id: str, module_id: str, config: Dict) -> None:
        """
        Set module configuration for a user.

        Raises:
            ValueError: If the profile doesn't exist
        """
        if user_id not in self._profiles:
            raise ValueError(f"Profile '{user_id}' does not exist")
        self._module_configs.setdefault(user_id, {})[module_id] = config
        logger.debug(f"Set config for module '{module_id}' on user '{user_id}'")

    def get_module_config(self, user_id: str, module_id: str) -> Optional[Dict]:
        """Get module configuration for a user, or None if not set."""
        return self._module_configs.get(user_id, {}).get(module_id)
