"""Tests for the session-backed table catalog, with the session mocked."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from conftest import make_layer, make_table, make_user
from db.models.map import Map
from db.models.user_table import LayerUserTable
from services.table_dependencies import TableCatalog


def _scalars_result(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    result.scalars.return_value.first.return_value = items[0] if items else None
    return result


class _Savepoint:
    """Stands in for ``session.begin_nested()``, recording how it was left."""

    def __init__(self):
        self.entered = 0
        self.rolled_back = []

    async def __aenter__(self):
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc is not None:
            self.rolled_back.append(exc)
        return False


def _session(*results):
    session = MagicMock()
    session.savepoint = _Savepoint()
    session.begin_nested = MagicMock(return_value=session.savepoint)
    session.execute = AsyncMock(side_effect=list(results))
    session.get = AsyncMock()
    session.flush = AsyncMock()
    return session


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unqualified_names_use_viewer_tables():
    alice = make_user("alice")
    parcels = make_table(alice, "parcels")
    session = _session(_scalars_result([parcels]))

    tables = await TableCatalog(session).lookup_by_names(["parcels", "ghost"], alice)

    assert tables == [parcels]
    # No schema in any name: the owner lookup query is skipped.
    assert session.execute.await_count == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_schema_selects_owning_user():
    alice = make_user("alice")
    bob = make_user("bob")
    bob_roads = make_table(bob, "roads", privacy="public")
    alice_parcels = make_table(alice, "parcels")
    session = _session(_scalars_result([bob]), _scalars_result([bob_roads, alice_parcels]))

    tables = await TableCatalog(session).lookup_by_names(
        ['"bob".roads', "public.parcels", "bob.roads"], alice
    )

    assert tables == [bob_roads, alice_parcels]
    assert session.execute.await_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_blank_names_short_circuit():
    session = _session()
    assert await TableCatalog(session).lookup_by_names(["", "  "], make_user("alice")) == []
    session.execute.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_layer_context_without_map():
    session = _session(_scalars_result([]))
    assert await TableCatalog(session).layer_context(make_layer()) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_layer_context_for_unsaved_layer():
    session = _session()
    layer = make_layer()
    layer.id = None
    assert await TableCatalog(session).layer_context(layer) is None
    session.execute.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_layer_context_loads_map_visualization_and_owner():
    alice = make_user("alice")
    map_obj = Map(id=uuid4(), owner_id=alice.id, name="Parcels")
    visualization_id = uuid4()
    session = _session(_scalars_result([map_obj]), _scalars_result([visualization_id]))
    session.get.return_value = alice

    context = await TableCatalog(session).layer_context(make_layer())

    assert context.map_id == map_obj.id
    assert context.visualization_id == visualization_id
    assert context.user is alice


@pytest.mark.unit
@pytest.mark.asyncio
async def test_replace_layer_tables_dedupes():
    alice = make_user("alice")
    parcels = make_table(alice, "parcels")
    roads = make_table(alice, "roads")
    session = _session(MagicMock())
    layer = make_layer()

    await TableCatalog(session).replace_layer_tables(layer, [parcels, roads, parcels])

    added = [call.args[0] for call in session.add.call_args_list]
    assert all(isinstance(item, LayerUserTable) for item in added)
    assert [item.user_table_id for item in added] == [parcels.id, roads.id]
    assert {item.layer_id for item in added} == {layer.id}
    session.flush.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_lookup_runs_under_savepoint():
    alice = make_user("alice")
    session = _session(_scalars_result([make_table(alice, "parcels")]))

    await TableCatalog(session).lookup_by_names(["parcels"], alice)

    assert session.savepoint.entered == 1
    assert session.savepoint.rolled_back == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_lookup_rolls_back_savepoint_and_keeps_session_usable():
    alice = make_user("alice")
    error = RuntimeError("relation does not exist")
    session = _session(error, MagicMock())
    catalog = TableCatalog(session)

    with pytest.raises(RuntimeError):
        await catalog.lookup_by_names(["parcels"], alice)

    assert session.savepoint.rolled_back == [error]
    # The dependency set can still be written afterwards.
    await catalog.replace_layer_tables(make_layer(), [])
    session.flush.assert_awaited_once()
