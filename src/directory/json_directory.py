# src/directory/json_directory.py — v1
"""Organization directory backed by an ``agencies.json`` export.

File shape::

    {"agencies": [{"name": ..., "short_name": ..., "slug": ...,
                   "cfr_references": [{"title": 7, "chapter": "I"}],
                   "children": [...]}]}
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from ecfrcount.core.errors import ParseError
from ecfrcount.core.models import Organization
from ecfrcount.directory.base_directory import OrganizationDirectory

logger = logging.getLogger(__name__)


class JsonOrganizationDirectory(OrganizationDirectory):
    """Loads the agency list once, then answers lookups from memory."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._organizations: list[Organization] | None = None

    @classmethod
    def from_organizations(cls, organizations: Iterable[Organization]) -> JsonOrganizationDirectory:
        """Build an in-memory directory (no backing file)."""
        directory = cls(path="")
        directory._organizations = list(organizations)
        return directory

    async def list_organizations(self) -> list[Organization]:
        if self._organizations is None:
            self._organizations = await asyncio.to_thread(self._load)
        return list(self._organizations)

    async def find_by_name(self, name: str) -> Organization | None:
        """Match order: exact (name, short name, slug), partial parent, partial child."""
        needle = name.strip().lower()
        if not needle:
            return None

        parents = await self.list_organizations()
        children = [child for parent in parents for child in parent.children]

        for org in [*parents, *children]:
            if needle in _exact_keys(org):
                return org
        for org in parents:
            if _partial_match(org, needle):
                return org
        for org in children:
            if _partial_match(org, needle):
                return org
        return None

    def _load(self) -> list[Organization]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ParseError(f"Failed to load agencies data from {self._path}: {e}") from e

        agencies = raw.get("agencies", []) if isinstance(raw, dict) else raw
        try:
            organizations = [Organization.model_validate(a) for a in agencies]
        except ValidationError as e:
            raise ParseError(f"Invalid agency record in {self._path}: {e}") from e
        logger.info("Loaded %d agencies from %s", len(organizations), self._path)
        return organizations


def _exact_keys(org: Organization) -> set[str]:
    return {v.lower() for v in (org.name, org.short_name, org.slug) if v}


def _partial_match(org: Organization, needle: str) -> bool:
    return needle in org.name.lower() or (
        org.short_name is not None and needle in org.short_name.lower()
    )
