"""
RouletteBot - Pool Definitions
==============================

Parses pool definition documents (local seed file or remote sync) into
Pool snapshots.

Document format:
    {
        "pools": [
            {
                "id": "quests",
                "name": "Quest Roulette",
                "exclusion": {"type": "last_n", "n": 2},
                "entries": [
                    {"id": "q1", "weight": 1, "tags": ["hr4"], "metadata": {"title": "..."}}
                ]
            }
        ]
    }
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import (
    ExcludeLastN,
    ExcludeTag,
    ExclusionRule,
    NoExclusion,
    Pool,
    PoolEntry,
    validate_pool,
)


# =============================================================================
# Wire Models
# =============================================================================

class ExclusionDefinition(BaseModel):
    """Exclusion rule as written in a pool document."""

    type: Literal["none", "last_n", "tag"] = "none"
    n: Optional[int] = None
    tag: Optional[str] = None

    def to_rule(self) -> ExclusionRule:
        if self.type == "last_n":
            return ExcludeLastN(n=self.n)
        if self.type == "tag":
            return ExcludeTag(tag=self.tag)
        return NoExclusion()


class EntryDefinition(BaseModel):
    """One drawable entry."""

    id: str = Field(min_length=1)
    weight: Union[int, float, str] = 1
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PoolDefinition(BaseModel):
    """One pool."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    exclusion: Optional[ExclusionDefinition] = None
    entries: List[EntryDefinition] = Field(default_factory=list)

    def to_pool(self) -> Pool:
        """Build an unversioned Pool and check its invariants."""
        pool = Pool(
            id=self.id,
            entries=tuple(
                PoolEntry.create(
                    id=entry.id,
                    weight=entry.weight,
                    tags=entry.tags,
                    metadata=entry.metadata,
                )
                for entry in self.entries
            ),
            exclusion_rule=self.exclusion.to_rule() if self.exclusion else NoExclusion(),
            name=self.name,
            description=self.description,
        )
        validate_pool(pool)
        return pool


# =============================================================================
# Parsing
# =============================================================================

def _describe(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors()[:3]:
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


def parse_pool_definition(data: Any) -> Pool:
    """
    Parse a single pool definition.

    Raises:
        ValidationError: If the definition is malformed or breaks an invariant.
    """
    try:
        definition = PoolDefinition.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed pool definition: {_describe(e)}") from e
    return definition.to_pool()


def parse_pools_document(data: Any) -> Tuple[List[Pool], Dict[str, ValidationError]]:
    """
    Parse a pools document, keeping valid pools and collecting failures.

    Accepts ``{"pools": [...]}`` or a bare list of pools.

    Returns:
        (valid pools in document order, {pool id or position: error})

    Raises:
        ValidationError: If the document itself has the wrong shape or
            repeats a pool id.
    """
    if isinstance(data, dict):
        items = data.get("pools")
    else:
        items = data
    if not isinstance(items, list):
        raise ValidationError("Pools document must be a list or an object with a 'pools' list")

    pools: List[Pool] = []
    errors: Dict[str, ValidationError] = {}
    seen = set()

    for index, item in enumerate(items):
        key = item.get("id") if isinstance(item, dict) and isinstance(item.get("id"), str) else f"#{index}"
        if key in seen:
            raise ValidationError(f"Pools document repeats pool id {key!r}")
        seen.add(key)
        try:
            pools.append(parse_pool_definition(item))
        except ValidationError as e:
            errors[key] = e

    return pools, errors


def load_pools_file(path: Union[str, Path]) -> Tuple[List[Pool], Dict[str, ValidationError]]:
    """
    Load a local pools document. A missing file yields no pools.

    Raises:
        ValidationError: If the file is not valid JSON or has the wrong shape.
    """
    path = Path(path)
    if not path.exists():
        return [], {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path.name} is not valid JSON: {e}") from e
    return parse_pools_document(data)


__all__ = [
    "ExclusionDefinition",
    "EntryDefinition",
    "PoolDefinition",
    "parse_pool_definition",
    "parse_pools_document",
    "load_pools_file",
]
