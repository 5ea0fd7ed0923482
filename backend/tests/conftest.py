import sys
from pathlib import Path

# Add the backend root directory to Python path first
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

"""
Pytest configuration and fixtures for layer table dependency tests.
"""

from uuid import uuid4

import pytest

from db.models.layer import Layer
from db.models.user import User
from db.models.user_table import UserTable
from services.analysis_graph import AnalysisGraph
from services.table_dependencies import LayerContext, TableDependencyResolver
from utility.string_methods import split_qualified_name


class FakeCatalog:
    """In-memory stand-in for ``TableCatalog``.

    Name lookup follows the same rules as the database-backed catalog: a
    schema naming a known user selects that user's tables, anything else
    the viewer's.
    """

    def __init__(self, users, tables, context=None):
        self.users = list(users)
        self.tables = list(tables)
        self.context = context
        self.lookups = []
        self.persisted = {}

    async def layer_context(self, layer):
        return self.context

    async def lookup_by_names(self, names, user):
        names = list(names)
        self.lookups.append(names)
        found = []
        for name in names:
            schema, table_name = split_qualified_name(name)
            owner = user
            if schema:
                owner = next((u for u in self.users if u.schema_name == schema), user)
            for table in self.tables:
                if table.user_id == owner.id and table.name == table_name and table not in found:
                    found.append(table)
        return found

    async def replace_layer_tables(self, layer, tables):
        self.persisted[layer.id] = list(tables)


class FakeQueryTables:
    """Maps query text to the table names the database would report.

    A value that is an exception instance is raised instead, simulating a
    query the database refuses to plan.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    async def affected_table_names(self, query, user):
        self.calls.append(query)
        response = self.responses.get(query, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


def make_user(username, database_schema=None):
    return User(
        id=uuid4(),
        username=username,
        email=f"{username}@example.com",
        database_schema=database_schema,
    )


def make_table(owner, name, privacy="private"):
    return UserTable(id=uuid4(), user_id=owner.id, name=name, privacy=privacy)


def make_layer(kind="carto", **options):
    return Layer(id=uuid4(), kind=kind, options=options)


@pytest.fixture
def alice():
    return make_user("alice")


@pytest.fixture
def bob():
    return make_user("bob")


@pytest.fixture
def alice_tables(alice):
    return {
        name: make_table(alice, name)
        for name in ("parcels", "roads", "rivers", "buildings", "census")
    }


@pytest.fixture
def bob_public_table(bob):
    return make_table(bob, "landmarks", privacy="public")


@pytest.fixture
def visualization_id():
    return uuid4()


@pytest.fixture
def layer_context(alice, visualization_id):
    return LayerContext(map_id=uuid4(), visualization_id=visualization_id, user=alice)


@pytest.fixture
def catalog(alice, bob, alice_tables, bob_public_table, layer_context):
    return FakeCatalog(
        users=[alice, bob],
        tables=[*alice_tables.values(), bob_public_table],
        context=layer_context,
    )


@pytest.fixture
def query_tables():
    return FakeQueryTables()


@pytest.fixture
def graph_holder(visualization_id):
    """Mutable holder so tests can install the graph the loader returns."""
    return {"graph": AnalysisGraph(visualization_id, [])}


@pytest.fixture
def resolver(catalog, query_tables, graph_holder):
    async def load_graph(visualization_id):
        return graph_holder["graph"]

    return TableDependencyResolver(catalog, query_tables, load_graph)
