from __future__ import annotations
"""Named access to filesystems built from saved bucket profiles."""

from typing import Callable

from .profiles import BucketProfile, ProfileStorage
from .services import S3FileSystem
from .settings import AdapterSettings, SettingsStorage


class UnknownProfileError(ValueError):
    """Raised when a profile name is not among the saved profiles."""


class FileSystemProvider:
    """Coordinates saved profiles with :class:`S3FileSystem` instances."""

    def __init__(
        self,
        storage: ProfileStorage | None = None,
        settings_storage: SettingsStorage | None = None,
        client_factory: Callable[..., object] | None = None,
    ):
        self._storage = storage or ProfileStorage()
        self._settings_storage = settings_storage or SettingsStorage()
        self._client_factory = client_factory
        self._settings: AdapterSettings = self._settings_storage.load()
        self._profiles: list[BucketProfile] = self._storage.load()
        self._filesystems: dict[str, S3FileSystem] = {}

    @property
    def settings(self) -> AdapterSettings:
        return self._settings

    def update_settings(self, settings: AdapterSettings) -> None:
        self._settings_storage.save(settings)
        self._settings = self._settings_storage.load()
        self._filesystems.clear()

    def list_profiles(self) -> list[BucketProfile]:
        return list(self._profiles)

    def get_profile(self, name: str) -> BucketProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise UnknownProfileError(f"Profile '{name}' does not exist")

    def save_profile(self, profile: BucketProfile, *, original_name: str | None = None) -> None:
        # Fail before persisting anything invalid.
        profile.to_config()
        if original_name and original_name != profile.name:
            self._profiles = [p for p in self._profiles if p.name != original_name]
            self._filesystems.pop(original_name, None)
        self._upsert_profile(profile)
        self._filesystems.pop(profile.name, None)
        self._storage.save(self._profiles)

    def delete_profile(self, name: str) -> None:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        if len(self._profiles) == before:
            raise UnknownProfileError(f"Profile '{name}' does not exist")
        self._filesystems.pop(name, None)
        self._storage.save(self._profiles)

    def get_filesystem(self, name: str) -> S3FileSystem:
        """Return the filesystem for a saved profile, building it on first use."""

        filesystem = self._filesystems.get(name)
        if filesystem is None:
            filesystem = S3FileSystem.from_profile(
                self.get_profile(name),
                settings=self._settings,
                client_factory=self._client_factory,
            )
            self._filesystems[name] = filesystem
        return filesystem

    def _upsert_profile(self, profile: BucketProfile) -> None:
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)
