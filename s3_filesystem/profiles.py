from __future__ import annotations
"""Saved bucket profiles and their persistence."""
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError

from .models import BucketConfig

logger = logging.getLogger(__name__)

PUBLIC_FIELDS = (
    "bucket_name",
    "bucket_host_name",
    "bucket_prefix",
    "region",
    "access_key",
    "endpoint_url",
)


@dataclass
class BucketProfile:
    """A named bucket configuration as entered by the user."""

    name: str
    bucket_name: str
    bucket_host_name: str
    bucket_prefix: str = ""
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint_url: Optional[str] = None

    def to_config(self) -> BucketConfig:
        return BucketConfig.create(
            bucket_name=self.bucket_name,
            bucket_host_name=self.bucket_host_name,
            bucket_prefix=self.bucket_prefix,
            region=self.region,
            access_key=self.access_key,
            secret_key=self.secret_key,
            endpoint_url=self.endpoint_url,
        )

    def public_fields(self) -> dict[str, str | None]:
        data: dict[str, str | None] = {"name": self.name}
        for field_name in PUBLIC_FIELDS:
            data[field_name] = getattr(self, field_name)
        return data


class KeychainStore:
    """Encapsulates OS keychain access for secret keys."""

    def __init__(self, service_name: str = "pys3fs"):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError as exc:
            logger.warning("Keychain lookup failed for %s: %s", profile_name, exc)
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError as exc:
            logger.warning("Keychain update failed for %s: %s", profile_name, exc)

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            return


class ProfileStorage:
    """JSON-backed store for bucket profiles; secrets stay in the keychain."""

    def __init__(
        self,
        storage_path: str | Path | None = None,
        keychain: KeychainStore | None = None,
    ):
        if storage_path is None:
            storage_path = Path.home() / ".pys3fs_buckets.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[BucketProfile]:
        data = self._read_data()
        profiles: list[BucketProfile] = []
        sanitized: list[dict[str, str | None]] = []
        saw_plaintext = False
        for entry in data:
            try:
                name = entry["name"]
                bucket_name = entry["bucket_name"]
                bucket_host_name = entry["bucket_host_name"]
            except (KeyError, TypeError):
                continue
            secret_key = entry.get("secret_key", "")
            if secret_key:
                saw_plaintext = True
                self._keychain.set_secret(name, secret_key)
            else:
                secret_key = self._keychain.get_secret(name)
            profile = BucketProfile(
                name=name,
                bucket_name=bucket_name,
                bucket_host_name=bucket_host_name,
                bucket_prefix=entry.get("bucket_prefix") or "",
                region=entry.get("region") or "",
                access_key=entry.get("access_key") or "",
                secret_key=secret_key,
                endpoint_url=entry.get("endpoint_url") or None,
            )
            profiles.append(profile)
            sanitized.append(profile.public_fields())
        if saw_plaintext:
            logger.info("Moved plaintext secret keys from %s into the keychain", self._path)
            self._write_data(sanitized)
        return profiles

    def save(self, profiles: list[BucketProfile]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = []
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
            data.append(profile.public_fields())
        existing_names = {
            entry.get("name")
            for entry in self._read_data()
            if isinstance(entry, dict) and isinstance(entry.get("name"), str)
        }
        current_names = {profile.name for profile in profiles}
        for name in existing_names - current_names:
            self._keychain.delete_secret(name)
        self._write_data(data)

    def _read_data(self) -> list:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable profile file %s: %s", self._path, exc)
            return []
        return data if isinstance(data, list) else []

    def _write_data(self, data: list[dict[str, str | None]]) -> None:
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
