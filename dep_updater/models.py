"""
models.py - Result types shared by all updaters.

Every ecosystem updater returns an UpdateResult holding PackageUpdate
entries, whatever channel the changes were detected through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

UpdateType = Literal["major", "minor", "patch", "unknown"]
Ecosystem = Literal["npm", "nix", "nixpkgs", "expo"]

UPDATE_TYPES: tuple[UpdateType, ...] = ("major", "minor", "patch", "unknown")
ECOSYSTEMS: tuple[Ecosystem, ...] = ("npm", "nix", "nixpkgs", "expo")

# ═══════════════════════════════════════════════════════════════════════════════
# Package Updates
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PackageUpdate:
    """A single detected version change.

    Versions are opaque strings: dotted numbers for npm packages, short
    revision hashes for flake inputs, upstream tags for overlay sources.
    """

    name: str
    from_version: str
    to_version: str
    update_type: UpdateType
    ecosystem: Ecosystem
    changelog: str | None = None
    breaking_changes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.from_version == self.to_version:
            raise ValueError(
                f"{self.name}: from_version and to_version are both {self.from_version!r}"
            )
        if self.update_type not in UPDATE_TYPES:
            raise ValueError(f"Unknown update type: {self.update_type!r}")
        if self.ecosystem not in ECOSYSTEMS:
            raise ValueError(f"Unknown ecosystem: {self.ecosystem!r}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the JSON report."""
        data: dict[str, Any] = {
            "name": self.name,
            "fromVersion": self.from_version,
            "toVersion": self.to_version,
            "updateType": self.update_type,
            "ecosystem": self.ecosystem,
        }
        if self.changelog is not None:
            data["changelog"] = self.changelog
        if self.breaking_changes:
            data["breakingChanges"] = list(self.breaking_changes)
        return data


@dataclass
class UpdateResult:
    """Outcome of one ecosystem run.

    A failed result never carries updates. Warnings collect the failures of
    best-effort steps that did not affect success.
    """

    success: bool
    ecosystem: Ecosystem
    updates: list[PackageUpdate] = field(default_factory=list)
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    downgrades: list[PackageUpdate] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.success:
            if self.updates:
                raise ValueError("A failed UpdateResult cannot carry updates")
            if not self.error:
                raise ValueError("A failed UpdateResult requires an error message")
        elif self.error is not None:
            raise ValueError("A successful UpdateResult cannot carry an error")

    @classmethod
    def ok(
        cls,
        ecosystem: Ecosystem,
        updates: list[PackageUpdate] | None = None,
        warnings: list[str] | None = None,
        downgrades: list[PackageUpdate] | None = None,
    ) -> UpdateResult:
        return cls(
            success=True,
            ecosystem=ecosystem,
            updates=list(updates or []),
            warnings=list(warnings or []),
            downgrades=list(downgrades or []),
        )

    @classmethod
    def failed(
        cls,
        ecosystem: Ecosystem,
        error: str,
        warnings: list[str] | None = None,
    ) -> UpdateResult:
        return cls(
            success=False,
            ecosystem=ecosystem,
            error=error,
            warnings=list(warnings or []),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "ecosystem": self.ecosystem,
            "updates": [u.to_dict() for u in self.updates],
        }
        if self.error is not None:
            data["error"] = self.error
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.downgrades:
            data["downgrades"] = [d.to_dict() for d in self.downgrades]
        return data


# ═══════════════════════════════════════════════════════════════════════════════
# Expo SDK
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class ExpoSDKVersion:
    """A published Expo SDK release."""

    version: str
    is_latest: bool = False
    changelog_url: str | None = None


@dataclass
class ExpoPackageVersions:
    """Package versions bundled with an Expo SDK."""

    sdk_version: str
    packages: dict[str, str] = field(default_factory=dict)
