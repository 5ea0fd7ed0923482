"""CRUD endpoints for layers."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_resolver
from api.maps import get_map_for_user
from db.models.layer import Layer
from db.models.map import Map
from db.models.map_layer import MapLayer
from db.models.user import User
from db.session import get_session
from models.layer import LayerCreate, LayerRead, LayerSql, LayerUpdate
from models.user_table import UserTableRead
from services.table_dependencies import TableDependencyResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/layers", tags=["layers"])


async def _get_layer_for_user(layer_id: UUID, db: AsyncSession, current_user: User) -> Layer:
    result = await db.execute(
        select(Layer)
        .join(MapLayer, MapLayer.layer_id == Layer.id)
        .join(Map, Map.id == MapLayer.map_id)
        .where(Layer.id == layer_id, Map.owner_id == current_user.id)
        .limit(1)
    )
    layer_obj = result.scalars().first()
    if not layer_obj:
        raise HTTPException(status_code=404, detail="Layer not found")
    return layer_obj


@router.post("/", response_model=LayerRead, status_code=status.HTTP_201_CREATED)
async def create_layer(
    payload: LayerCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    resolver: TableDependencyResolver = Depends(get_resolver),
) -> LayerRead:
    """Create a layer on one of the current user's maps."""
    await get_map_for_user(payload.map_id, db, current_user)

    layer_obj = Layer(
        kind=payload.kind,
        options=payload.options,
        infowindow=payload.infowindow,
        tooltip=payload.tooltip,
    )
    db.add(layer_obj)
    await db.flush()
    db.add(
        MapLayer(
            map_id=payload.map_id,
            layer_id=layer_obj.id,
            z_index=payload.z_index,
            visible=payload.visible,
        )
    )
    await db.flush()

    tables = await resolver.register_table_dependencies(layer_obj)
    logger.info("Layer %s created with %s table dependencies", layer_obj.id, len(tables))

    await db.commit()
    await db.refresh(layer_obj)
    return LayerRead.model_validate(layer_obj)


@router.get("/{layer_id}", response_model=LayerRead)
async def get_layer(
    layer_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> LayerRead:
    """Fetch a layer by id."""
    layer_obj = await _get_layer_for_user(layer_id, db, current_user)
    return LayerRead.model_validate(layer_obj)


@router.patch("/{layer_id}", response_model=LayerRead)
async def update_layer(
    layer_id: UUID,
    payload: LayerUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    resolver: TableDependencyResolver = Depends(get_resolver),
) -> LayerRead:
    """Update a layer and recompute its table dependencies."""
    layer_obj = await _get_layer_for_user(layer_id, db, current_user)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    options_update = updates.pop("options", None)
    if options_update is not None:
        if options_update:
            existing_options = layer_obj.options or {}
            layer_obj.options = {**existing_options, **options_update}
        else:
            layer_obj.options = options_update

    for key, value in updates.items():
        setattr(layer_obj, key, value)

    await db.flush()
    await resolver.register_table_dependencies(layer_obj)

    await db.commit()
    await db.refresh(layer_obj)
    return LayerRead.model_validate(layer_obj)


@router.delete("/{layer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_layer(
    layer_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> Response:
    """Delete a layer."""
    layer_obj = await _get_layer_for_user(layer_id, db, current_user)

    await db.delete(layer_obj)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{layer_id}/affected_tables", response_model=list[UserTableRead])
async def list_affected_tables(
    layer_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    resolver: TableDependencyResolver = Depends(get_resolver),
) -> list[UserTableRead]:
    """Tables the layer reads from that the current user may read."""
    layer_obj = await _get_layer_for_user(layer_id, db, current_user)
    tables = await resolver.affected_tables_readable_by(layer_obj, current_user)
    return [UserTableRead.model_validate(table) for table in tables]


@router.get("/{layer_id}/sql", response_model=LayerSql)
async def get_layer_sql(
    layer_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> LayerSql:
    """Queries used to render the layer for the current user."""
    layer_obj = await _get_layer_for_user(layer_id, db, current_user)
    return LayerSql(
        default_query=layer_obj.default_query(current_user),
        wrapped_sql=layer_obj.wrapped_sql(current_user),
    )
