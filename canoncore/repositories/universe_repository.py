"""Repositories for universes and collections."""

from typing import List

from ..models.universe import Universe, Collection
from .base import BaseRepository


class UniverseRepository(BaseRepository[Universe]):
    model_class = Universe
    kind = "universe"
    id_prefix = "uni"

    def create(self, user_id: str, name: str, description: str = "", is_public: bool = False) -> Universe:
        return self._add(Universe(
            id=self.new_id(),
            user_id=user_id,
            name=name,
            description=description,
            is_public=is_public,
            sort_order=self._next_order(Universe.user_id == user_id),
        ))


class CollectionRepository(BaseRepository[Collection]):
    model_class = Collection
    kind = "collection"
    id_prefix = "col"

    def create(self, universe: Universe, name: str, description: str = "") -> Collection:
        return self._add(Collection(
            id=self.new_id(),
            universe_id=universe.id,
            user_id=universe.user_id,
            name=name,
            description=description,
            sort_order=self._next_order(Collection.universe_id == universe.id),
        ))

    def get_by_universe(self, universe_id: str) -> List[Collection]:
        return (
            self._base_query()
            .filter(Collection.universe_id == universe_id)
            .order_by(Collection.sort_order, Collection.id)
            .all()
        )
