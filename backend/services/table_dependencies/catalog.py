"""Metadata lookups backing table dependency resolution."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, or_, select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from db.models.map import Map
from db.models.map_layer import MapLayer
from db.models.user import User
from db.models.user_table import LayerUserTable, UserTable
from db.models.visualization import Visualization
from utility.string_methods import is_blank, split_qualified_name


@dataclass(frozen=True)
class LayerContext:
    """Owning map, visualization and user of a layer, loaded once per call."""

    map_id: Any
    visualization_id: Optional[Any]
    user: Optional[User]


class TableCatalog:
    """Reads layer ownership and user tables through an ORM session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def layer_context(self, layer) -> Optional[LayerContext]:
        """Return the context of the layer's first map, or None without a map."""
        if layer.id is None:
            return None
        result = await self.session.execute(
            select(Map)
            .join(MapLayer, MapLayer.map_id == Map.id)
            .where(MapLayer.layer_id == layer.id)
            .order_by(Map.id.asc())
            .limit(1)
        )
        map_obj = result.scalars().first()
        if map_obj is None:
            return None

        viz_result = await self.session.execute(
            select(Visualization.id).where(Visualization.map_id == map_obj.id)
        )
        visualization_id = viz_result.scalars().first()
        user = None
        if map_obj.owner_id is not None:
            user = await self.session.get(User, map_obj.owner_id)
        return LayerContext(map_id=map_obj.id, visualization_id=visualization_id, user=user)

    async def lookup_by_names(self, names: Iterable[str], user) -> List[UserTable]:
        """Resolve table names to user tables.

        A schema-qualified name is looked up among the tables of the user
        owning that schema; unqualified names, and schemas no user owns
        (``public``), among the tables of ``user``. Unknown names are dropped.
        """
        parsed: List[Tuple[Optional[str], str]] = [
            split_qualified_name(name) for name in names if not is_blank(name)
        ]
        if not parsed or user is None:
            return []

        # Under a savepoint: a failed lookup leaves the request transaction usable.
        async with self.session.begin_nested():
            return await self._lookup(parsed, user)

    async def _lookup(self, parsed: List[Tuple[Optional[str], str]], user) -> List[UserTable]:
        schemas: List[str] = sorted({schema for schema, _ in parsed if schema})
        owners: Dict[str, Any] = {}
        if schemas:
            result = await self.session.execute(
                select(User).where(
                    or_(User.username.in_(schemas), User.database_schema.in_(schemas))
                )
            )
            for owner in result.scalars().all():
                owners.setdefault(owner.schema_name, owner.id)
                owners.setdefault(owner.username, owner.id)

        keys: List[Tuple[Any, str]] = []
        for schema, table in parsed:
            owner_id = owners.get(schema, user.id) if schema else user.id
            key = (owner_id, table)
            if key not in keys:
                keys.append(key)

        result = await self.session.execute(
            select(UserTable).where(tuple_(UserTable.user_id, UserTable.name).in_(keys))
        )
        found = {(table.user_id, table.name): table for table in result.scalars().all()}
        return [found[key] for key in keys if key in found]

    async def replace_layer_tables(self, layer, tables: Iterable[UserTable]) -> None:
        """Replace the persisted dependency set of ``layer``. Does not commit."""
        await self.session.execute(delete(LayerUserTable).where(LayerUserTable.layer_id == layer.id))
        seen = set()
        for table in tables:
            if table.id in seen:
                continue
            seen.add(table.id)
            self.session.add(LayerUserTable(layer_id=layer.id, user_table_id=table.id))
        await self.session.flush()

    async def layer_tables(self, layer) -> List[UserTable]:
        """Return the persisted dependency set of ``layer``."""
        result = await self.session.execute(
            select(UserTable)
            .join(LayerUserTable, LayerUserTable.user_table_id == UserTable.id)
            .where(LayerUserTable.layer_id == layer.id)
            .order_by(UserTable.name.asc())
        )
        return list(result.scalars().all())
