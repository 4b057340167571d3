"""
Tests for layers and edges: repository SQL and API endpoints.
"""
import pytest

from models import Edge, Layer
from services_edges import EdgeRepository, canonical_endpoints
from services_layers import LayerRepository
from tests.mock_helpers import MockDatabase
from tree_errors import InvalidIdError, SelfEdgeError

pytestmark = pytest.mark.unit

L1 = "5d2c9e10-0000-4000-8000-0000000000a1"
E1 = "5d2c9e10-0000-4000-8000-0000000000e1"
T1 = "5d2c9e10-0000-4000-8000-000000000001"
N1 = "5d2c9e10-0000-4000-8000-0000000000b1"
N2 = "5d2c9e10-0000-4000-8000-0000000000b2"
K1 = "5d2c9e10-0000-4000-8000-0000000000c1"
Y1 = "5d2c9e10-0000-4000-8000-0000000000d1"
S1 = "5d2c9e10-0000-4000-8000-0000000000f1"


def layer_row(layer_id=L1, name="Links", props_schema=None):
    return {
        "id": layer_id,
        "name": name,
        "props": {},
        "props_schema": props_schema,
        "created_at": None,
        "updated_at": None,
    }


def edge_row(edge_id=E1, **overrides):
    row = {
        "id": edge_id,
        "name": "relates",
        "layer_id": L1,
        "a_tree_id": T1,
        "a_node_id": N1,
        "b_tree_id": T1,
        "b_node_id": N2,
        "category_id": None,
        "type_id": None,
        "props": {},
        "created_at": None,
        "updated_at": None,
    }
    row.update(overrides)
    return row


class TestCanonicalEndpoints:
    def test_orders_pair(self):
        assert canonical_endpoints(("t2", "n1"), ("t1", "n9")) == (("t1", "n9"), ("t2", "n1"))
        assert canonical_endpoints(("t1", "n1"), ("t1", "n2")) == (("t1", "n1"), ("t1", "n2"))

    def test_direction_does_not_matter(self):
        assert canonical_endpoints(("t1", "b"), ("t1", "a")) == canonical_endpoints(("t1", "a"), ("t1", "b"))

    def test_self_edge_rejected(self):
        with pytest.raises(SelfEdgeError):
            canonical_endpoints(("t1", "N1"), ("T1", "n1"))


class TestEdgeRepository:
    def test_create_edge_stores_canonical_order(self):
        db = MockDatabase()
        db.cursor.when("INSERT INTO edge", [edge_row()])

        EdgeRepository(db).create_edge(L1, "relates", (T1, N2), (T1, N1), props={"w": 1})

        _, params = db.cursor.find("INSERT INTO edge")[0]
        assert params == ("relates", L1, T1, N1, T1, N2, None, {"w": 1}, None)

    def test_create_edge_with_category_and_type(self):
        db = MockDatabase()
        db.cursor.when("INSERT INTO edge", [edge_row(category_id=K1, type_id=Y1)])

        edge = EdgeRepository(db).create_edge(L1, "relates", (T1, N1), (T1, N2), category_id=K1, type_id=Y1)

        assert edge.type_id == Y1
        sql, params = db.cursor.find("INSERT INTO edge")[0]
        assert "category_id, props, type_id)" in sql
        assert params[-3:] == (K1, {}, Y1)

    def test_self_edge_writes_nothing(self):
        db = MockDatabase()
        with pytest.raises(SelfEdgeError):
            EdgeRepository(db).create_edge(L1, "loop", (T1, N1), (T1, N1))
        assert db.cursor.executed == []

    @pytest.mark.parametrize(
        "layer_id, source, extra, field",
        [
            ("L1", (T1, N1), {}, "layer_id"),
            (L1, ("t1", N1), {}, "b_tree_id"),
            (L1, (T1, "n1"), {}, "b_node_id"),
            (L1, (T1, N1), {"category_id": "K1"}, "category_id"),
            (L1, (T1, N1), {"type_id": "relates"}, "type_id"),
        ],
    )
    def test_malformed_ids_rejected_before_insert(self, layer_id, source, extra, field):
        db = MockDatabase()
        with pytest.raises(InvalidIdError) as exc_info:
            EdgeRepository(db).create_edge(layer_id, "relates", source, (T1, N2), **extra)
        assert exc_info.value.field == field
        assert db.cursor.executed == []

    def test_list_edges_for_node_checks_both_ends(self):
        db = MockDatabase()
        db.cursor.when("FROM edge WHERE (a_tree_id", [edge_row()])

        edges = EdgeRepository(db).list_edges_for_node(T1, N2)

        assert [e.id for e in edges] == [E1]
        sql, params = db.cursor.executed[0]
        assert "OR (b_tree_id = %s AND b_node_id = %s)" in sql
        assert params == (T1, N2, T1, N2)

    def test_list_edges_by_layer(self):
        db = MockDatabase()
        EdgeRepository(db).list_edges_by_layer(L1)
        assert db.cursor.executed[0] == ("SELECT * FROM edge WHERE layer_id = %s ORDER BY created_at ASC", (L1,))

    def test_update_edge(self):
        db = MockDatabase()
        db.cursor.when("UPDATE edge SET", [edge_row(name="renamed")])

        edge = EdgeRepository(db).update_edge(E1, {"props": None, "name": "renamed"})

        sql, params = db.cursor.executed[0]
        assert sql == "UPDATE edge SET name = %s, props = %s WHERE id = %s RETURNING *"
        assert params == ("renamed", {}, E1)
        assert edge.name == "renamed"

    def test_update_edge_type(self):
        db = MockDatabase()
        db.cursor.when("UPDATE edge SET", [edge_row(type_id=Y1)])

        EdgeRepository(db).update_edge(E1, {"type_id": Y1})

        assert db.cursor.executed[0] == ("UPDATE edge SET type_id = %s WHERE id = %s RETURNING *", (Y1, E1))

    @pytest.mark.parametrize("field", ["layer_id", "category_id", "type_id"])
    def test_update_with_malformed_reference_rejected(self, field):
        db = MockDatabase()
        with pytest.raises(InvalidIdError):
            EdgeRepository(db).update_edge(E1, {field: "X1"})
        assert db.cursor.executed == []

    def test_empty_update_is_a_read(self):
        db = MockDatabase()
        db.cursor.when("SELECT * FROM edge WHERE id", [edge_row()])
        assert EdgeRepository(db).update_edge(E1, {}).id == E1
        assert db.cursor.writes() == []

    def test_malformed_ids_are_not_found(self):
        db = MockDatabase()
        repo = EdgeRepository(db)

        assert repo.get_edge("E1") is None
        assert repo.update_edge("E1", {"name": "x"}) is None
        assert repo.delete_edge("E1") is False
        assert repo.list_edges_by_layer("L1") == []
        assert repo.list_edges_for_node(T1, "n1") == []
        assert db.cursor.executed == []


class TestLayerRepository:
    def test_create_and_rename(self):
        db = MockDatabase()
        db.cursor.when("INSERT INTO layer", [layer_row()])
        db.cursor.when("UPDATE layer SET name", [layer_row(name="Renamed")])
        repo = LayerRepository(db)

        assert repo.create_layer("Links").name == "Links"
        assert repo.rename_layer(L1, "Renamed").name == "Renamed"
        assert db.cursor.find("INSERT INTO layer")[0][1] == ("Links", {}, None)
        assert db.cursor.find("UPDATE layer")[0][1] == ("Renamed", L1)

    def test_create_with_schema(self):
        db = MockDatabase()
        db.cursor.when("INSERT INTO layer", [layer_row(props_schema=S1)])

        layer = LayerRepository(db).create_layer("Links", props_schema=S1)

        assert layer.props_schema == S1
        sql, params = db.cursor.executed[0]
        assert sql == "INSERT INTO layer (name, props, props_schema) VALUES (%s, %s, %s) RETURNING *"
        assert params == ("Links", {}, S1)

    def test_create_with_malformed_schema_rejected(self):
        db = MockDatabase()
        with pytest.raises(InvalidIdError):
            LayerRepository(db).create_layer("Links", props_schema="links-schema")
        assert db.cursor.executed == []

    def test_rename_missing_layer(self):
        assert LayerRepository(MockDatabase()).rename_layer(L1, "x") is None

    def test_delete_layer(self):
        db = MockDatabase()
        assert LayerRepository(db).delete_layer(L1) is False
        assert db.cursor.executed[0] == ("DELETE FROM layer WHERE id = %s", (L1,))

    def test_malformed_ids_are_not_found(self):
        db = MockDatabase()
        repo = LayerRepository(db)

        assert repo.get_layer("L9") is None
        assert repo.rename_layer("L9", "x") is None
        assert repo.delete_layer("L9") is False
        assert db.cursor.executed == []


class TestLayersAPI:
    """Tests for /api/layers"""

    def test_create_layer(self, client, mock_layer_repo):
        mock_layer_repo.create_layer.return_value = Layer(**layer_row())
        response = client.post("/api/layers/", json={"name": "Links"})
        assert response.status_code == 201
        mock_layer_repo.create_layer.assert_called_once_with("Links", None, None)

    def test_create_layer_with_schema(self, client, mock_layer_repo):
        mock_layer_repo.create_layer.return_value = Layer(**layer_row(props_schema=S1))
        response = client.post("/api/layers/", json={"name": "Links", "props_schema": S1})
        assert response.status_code == 201
        assert response.json()["props_schema"] == S1
        mock_layer_repo.create_layer.assert_called_once_with("Links", None, S1)

    def test_get_layer_not_found(self, client, mock_layer_repo):
        mock_layer_repo.get_layer.return_value = None
        response = client.get("/api/layers/L9")
        assert response.status_code == 404
        assert response.json()["detail"] == "Layer not found"

    def test_rename_layer(self, client, mock_layer_repo):
        mock_layer_repo.rename_layer.return_value = Layer(**layer_row(name="Renamed"))
        response = client.put(f"/api/layers/{L1}", json={"name": "Renamed"})
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_layer_edges(self, client, mock_edge_repo):
        mock_edge_repo.list_edges_by_layer.return_value = [Edge(**edge_row())]
        response = client.get(f"/api/layers/{L1}/edges")
        assert response.status_code == 200
        mock_edge_repo.list_edges_by_layer.assert_called_once_with(L1)


class TestEdgesAPI:
    """Tests for /api/edges"""

    def test_create_edge(self, client, mock_edge_repo):
        mock_edge_repo.create_edge.return_value = Edge(**edge_row())
        response = client.post(
            f"/api/edges/{L1}",
            json={
                "name": "relates",
                "source": {"tree_id": T1, "node_id": N2},
                "target": {"tree_id": T1, "node_id": N1},
                "type_id": Y1,
            },
        )
        assert response.status_code == 201
        mock_edge_repo.create_edge.assert_called_once_with(
            L1,
            "relates",
            source=(T1, N2),
            target=(T1, N1),
            category_id=None,
            props=None,
            type_id=Y1,
        )

    def test_create_self_edge_is_400(self, client, mock_edge_repo):
        mock_edge_repo.create_edge.side_effect = SelfEdgeError()
        response = client.post(
            f"/api/edges/{L1}",
            json={
                "name": "loop",
                "source": {"tree_id": T1, "node_id": N1},
                "target": {"tree_id": T1, "node_id": N1},
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "An edge cannot connect a node to itself."

    def test_create_edge_in_malformed_layer_is_400(self, client, test_app, mock_db):
        from dependencies import get_edge_repository

        test_app.dependency_overrides[get_edge_repository] = lambda: EdgeRepository(mock_db)
        response = client.post(
            "/api/edges/L1",
            json={
                "name": "relates",
                "source": {"tree_id": T1, "node_id": N1},
                "target": {"tree_id": T1, "node_id": N2},
            },
        )
        assert response.status_code == 400
        assert "layer_id" in response.json()["detail"]
        assert mock_db.cursor.executed == []

    def test_list_filters(self, client, mock_edge_repo):
        mock_edge_repo.list_edges.return_value = []
        mock_edge_repo.list_edges_by_layer.return_value = []
        mock_edge_repo.list_edges_for_node.return_value = []

        client.get("/api/edges/")
        client.get("/api/edges/", params={"layer_id": L1})
        client.get("/api/edges/", params={"tree_id": T1, "node_id": N1})

        mock_edge_repo.list_edges.assert_called_once_with()
        mock_edge_repo.list_edges_by_layer.assert_called_once_with(L1)
        mock_edge_repo.list_edges_for_node.assert_called_once_with(T1, N1)

    def test_get_edge_not_found(self, client, mock_edge_repo):
        mock_edge_repo.get_edge.return_value = None
        assert client.get("/api/edges/item/E9").status_code == 404

    def test_update_edge_rejects_endpoint_change(self, client, mock_edge_repo):
        response = client.patch(f"/api/edges/item/{E1}", json={"a_node_id": N2})
        assert response.status_code == 422
        mock_edge_repo.update_edge.assert_not_called()

    def test_update_edge(self, client, mock_edge_repo):
        mock_edge_repo.update_edge.return_value = Edge(**edge_row(name="renamed"))
        response = client.patch(
            f"/api/edges/item/{E1}",
            json={"name": "renamed", "category_id": None, "type_id": None},
        )
        assert response.status_code == 200
        mock_edge_repo.update_edge.assert_called_once_with(
            E1, {"name": "renamed", "category_id": None, "type_id": None}
        )

    def test_delete_edge(self, client, mock_edge_repo):
        mock_edge_repo.delete_edge.return_value = True
        assert client.delete(f"/api/edges/item/{E1}").status_code == 204
