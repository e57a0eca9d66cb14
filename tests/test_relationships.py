from cmdb.models import ConfigurationItem, User
from cmdb.relationships import build_graph


def _item(item_id, owner):
    return ConfigurationItem(
        id=item_id,
        name=f"ci {item_id}",
        item_type="Server",
        status="Active",
        environment="Production",
        item_owner=owner,
        created_at="2025-01-01T00:00:00+00:00",
    )


def _user(user_id, name):
    return User(id=user_id, name=name, email=f"{user_id}@example.com", role="Admin", created_at="2025-01-01T00:00:00+00:00")


def test_layout_groups_items_by_owner():
    users = [_user("u1", "Alice"), _user("u2", "Bob")]
    items = [_item("i1", "Alice"), _item("i2", "Bob"), _item("i3", "Alice"), _item("i4", "Ghost"), _item("i5", None)]

    graph = build_graph(items, users)

    positions = {n.id: (n.position.x, n.position.y) for n in graph.nodes}
    assert positions == {
        "user-u1": (50, 0),
        "ci-i1": (450, 0),
        "user-u2": (50, 250),
        "ci-i2": (450, 250),
        "ci-i3": (730, 0),
    }
    assert [(e.id, e.source, e.target) for e in graph.edges] == [
        ("edge-u1-i1", "user-u1", "ci-i1"),
        ("edge-u2-i2", "user-u2", "ci-i2"),
        ("edge-u1-i3", "user-u1", "ci-i3"),
    ]


def test_node_data():
    graph = build_graph([_item("i1", "Alice")], [_user("u1", "Alice")])

    user_node, item_node = graph.nodes
    assert user_node.type == "userNode"
    assert user_node.data == {"name": "Alice", "role": "Admin", "created_at": "2025-01-01T00:00:00+00:00"}
    assert item_node.type == "ciNode"
    assert item_node.data["responsible_id"] == "u1"
    assert item_node.data["status"] == "Active"


def test_empty_graph():
    graph = build_graph([_item("i1", "Nobody")], [])
    assert graph.nodes == []
    assert graph.edges == []


def test_graph_endpoint(client, alice, web_server):
    graph = client.get("/relationships").json()

    assert [n["id"] for n in graph["nodes"]] == [f"user-{alice.id}", f"ci-{web_server.id}"]
    assert graph["edges"][0]["animated"] is True
