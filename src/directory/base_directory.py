# src/directory/base_directory.py — v1
"""Abstract organization directory interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ecfrcount.core.models import Organization


class OrganizationDirectory(ABC):
    """Resolves human-entered agency names to canonical records."""

    @abstractmethod
    async def find_by_name(self, name: str) -> Organization | None:
        """Resolve an exact name, partial name or abbreviation; None if unknown."""

    @abstractmethod
    async def list_organizations(self) -> list[Organization]:
        """All top-level organizations (children nested)."""
