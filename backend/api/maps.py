"""CRUD endpoints for maps."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user
from db.models.layer import Layer
from db.models.map import Map
from db.models.map_layer import MapLayer
from db.models.user import User
from db.models.visualization import Visualization
from db.session import get_session
from models.analysis import AnalysisDefinitions, AnalysisNodeRead
from models.layer import LayerRead
from models.map_layer import MapLayerRead
from models.map import MapCreate, MapRead, MapUpdate
from services.analysis_graph import replace_analysis_graph


router = APIRouter(prefix="/maps", tags=["maps"])


async def get_map_for_user(
    map_id: UUID,
    db: AsyncSession,
    current_user: User,
) -> Map:
    result = await db.execute(select(Map).where(Map.id == map_id, Map.owner_id == current_user.id))
    map_obj = result.scalars().first()
    if not map_obj:
        raise HTTPException(status_code=404, detail="Map not found")
    return map_obj


async def _visualization_id(db: AsyncSession, map_id: UUID):
    result = await db.execute(select(Visualization.id).where(Visualization.map_id == map_id))
    return result.scalars().first()


def _map_read(map_obj: Map, visualization_id) -> MapRead:
    return MapRead(
        id=map_obj.id,
        name=map_obj.name,
        description=map_obj.description,
        visualization_id=visualization_id,
    )


@router.post("/", response_model=MapRead, status_code=status.HTTP_201_CREATED)
async def create_map(
    payload: MapCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MapRead:
    """Create a map together with its visualization."""
    map_obj = Map(
        name=payload.name,
        description=payload.description,
        owner_id=current_user.id,
    )
    db.add(map_obj)
    await db.flush()
    visualization = Visualization(map_id=map_obj.id, name=payload.name)
    db.add(visualization)
    await db.commit()
    await db.refresh(map_obj)
    await db.refresh(visualization)
    return _map_read(map_obj, visualization.id)


@router.get("/", response_model=list[MapRead])
async def list_maps(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[MapRead]:
    """List maps."""
    result = await db.execute(
        select(Map, Visualization.id)
        .outerjoin(Visualization, Visualization.map_id == Map.id)
        .where(Map.owner_id == current_user.id)
        .order_by(Map.name.asc())
        .limit(limit)
        .offset(offset)
    )
    return [_map_read(map_obj, visualization_id) for map_obj, visualization_id in result.all()]


@router.get("/{map_id}", response_model=MapRead)
async def get_map(
    map_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MapRead:
    """Fetch a map by id."""
    map_obj = await get_map_for_user(map_id, db, current_user)
    return _map_read(map_obj, await _visualization_id(db, map_obj.id))


@router.patch("/{map_id}", response_model=MapRead)
async def update_map(
    map_id: UUID,
    payload: MapUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MapRead:
    """Update a map."""
    map_obj = await get_map_for_user(map_id, db, current_user)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    for key, value in updates.items():
        setattr(map_obj, key, value)

    await db.commit()
    await db.refresh(map_obj)
    return _map_read(map_obj, await _visualization_id(db, map_obj.id))


@router.delete("/{map_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_map(
    map_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> Response:
    """Delete a map."""
    map_obj = await get_map_for_user(map_id, db, current_user)

    await db.delete(map_obj)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{map_id}/layers", response_model=list[MapLayerRead])
async def list_map_layers(
    map_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[MapLayerRead]:
    """List layers for a map."""
    await get_map_for_user(map_id, db, current_user)

    result = await db.execute(
        select(MapLayer, Layer)
        .join(Layer, MapLayer.layer_id == Layer.id)
        .where(MapLayer.map_id == map_id)
        .order_by(MapLayer.z_index.asc())
    )

    records: list[MapLayerRead] = []
    for map_layer, layer in result.all():
        base = LayerRead.model_validate(layer).model_dump()
        records.append(
            MapLayerRead.model_validate(
                {
                    **base,
                    "z_index": map_layer.z_index,
                    "visible": map_layer.visible,
                }
            )
        )

    return records


@router.put("/{map_id}/analyses", response_model=list[AnalysisNodeRead])
async def replace_map_analyses(
    map_id: UUID,
    payload: AnalysisDefinitions,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[AnalysisNodeRead]:
    """Replace the analysis graph of the map's visualization."""
    map_obj = await get_map_for_user(map_id, db, current_user)
    visualization_id = await _visualization_id(db, map_obj.id)
    if visualization_id is None:
        raise HTTPException(status_code=404, detail="Visualization not found")

    try:
        nodes = await replace_analysis_graph(db, visualization_id, payload.analyses)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    await db.commit()
    return [AnalysisNodeRead.model_validate(node) for node in nodes]
