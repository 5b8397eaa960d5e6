"""
Entity Resolution

Maps a free-form entity reference emitted by the model (a name or an id)
to a persisted identity.

Precedence:
    1. Entity created in this run, by case-insensitive reference name
       (the most recent creation wins when names collide)
    2. NODE context item, by exact id or case-insensitive name
       (first match in snapshot order)
    3. Entity created in this run, by exact id
    4. Not found (None)

Surrounding whitespace in the reference is ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ontology_agent.types.context import ContextItem, ContextKind
from ontology_agent.types.execution import CreatedEntity, EntityRef


class CreatedEntityRegistry:
    """
    Run-scoped, append-only list of created entities.

    Entries are never mutated or removed.
    """

    def __init__(self, entities: Iterable[CreatedEntity] = ()) -> None:
        self._entities: list[CreatedEntity] = list(entities)

    def add(self, entity: CreatedEntity) -> None:
        self._entities.append(entity)

    def snapshot(self) -> list[CreatedEntity]:
        """Copy of the current entries, in creation order."""
        return list(self._entities)

    def __iter__(self) -> Iterator[CreatedEntity]:
        return iter(list(self._entities))

    def __len__(self) -> int:
        return len(self._entities)


class EntityResolver:
    """
    Resolves references against a registry and a context snapshot.

    The registry is read live, so entities created by earlier actions are
    visible to later ones.
    """

    def __init__(
        self,
        registry: CreatedEntityRegistry,
        context: list[ContextItem],
    ) -> None:
        self.registry = registry
        self._nodes = [item for item in context if item.kind is ContextKind.NODE]

    def resolve(self, reference: str) -> EntityRef | None:
        ref = reference.strip()
        if not ref:
            return None
        folded = ref.casefold()

        created = self.registry.snapshot()

        for entity in reversed(created):
            if entity.reference_name.strip().casefold() == folded:
                return EntityRef(
                    id=entity.id,
                    name=entity.reference_name,
                    entity_type=entity.entity_type,
                    source="created",
                )

        for item in self._nodes:
            name = item.name
            if item.id == ref or (name is not None and name.strip().casefold() == folded):
                return EntityRef(
                    id=item.id,
                    name=name,
                    entity_type=item.entity_type,
                    source="context",
                )

        for entity in created:
            if entity.id == ref:
                return EntityRef(
                    id=entity.id,
                    name=entity.reference_name,
                    entity_type=entity.entity_type,
                    source="created",
                )

        return None
