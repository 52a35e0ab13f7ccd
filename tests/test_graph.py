"""Tests for the resource graph: references, validation, ordering, rendering."""

import pytest

from chat_topology.errors import DependencyCycleError, ReferentialIntegrityError
from chat_topology.graph import Node, Ref, ResourceGraph, references, walk


def _node(kind, name, body=None, outputs=None, depends_on=()):
    return Node(
        kind=kind,
        name=name,
        body=body or {},
        outputs=outputs if outputs is not None else {"name": name},
        depends_on=depends_on,
    )


class TestNodeRef:
    def test_ref_points_at_key_and_output(self):
        node = _node("Service", "chat")
        assert node.ref("name") == Ref("Service/chat", "name")

    def test_ref_to_unknown_output_raises(self):
        node = _node("Service", "chat")
        with pytest.raises(ReferentialIntegrityError, match="no output 'port/grpc'"):
            node.ref("port/grpc")


class TestWalk:
    def test_replaces_nested_refs(self):
        body = {"a": [Ref("X/x", "name"), {"b": Ref("Y/y", "name")}], "c": 1}
        result = walk(body, lambda ref: ref.key)
        assert result == {"a": ["X/x", {"b": "Y/y"}], "c": 1}

    def test_references_collects_every_ref(self):
        body = {"a": (Ref("X/x", "name"),), "b": {"c": Ref("Y/y", "port/http")}}
        assert [ref.key for ref in references(body)] == ["X/x", "Y/y"]


class TestValidate:
    def test_unknown_resource_is_rejected(self):
        graph = ResourceGraph()
        graph.add(_node("IngressRoute", "chat", body={"m": Ref("Middleware/missing", "name")}))
        with pytest.raises(ReferentialIntegrityError, match="unknown resource Middleware/missing"):
            graph.validate()

    def test_unknown_output_is_rejected(self):
        graph = ResourceGraph()
        graph.add(_node("Service", "chat", outputs={"name": "chat", "port/http": 8080}))
        graph.add(_node("IngressRoute", "chat", body={"port": Ref("Service/chat", "port/admin")}))
        with pytest.raises(ReferentialIntegrityError, match="unknown output 'port/admin'"):
            graph.validate()

    def test_unknown_depends_on_is_rejected(self):
        graph = ResourceGraph()
        graph.add(_node("Deployment", "chat", depends_on=("Image/chat",)))
        with pytest.raises(ReferentialIntegrityError):
            graph.validate()

    def test_duplicate_identity_is_rejected(self):
        graph = ResourceGraph()
        graph.add(_node("Middleware", "chat"))
        with pytest.raises(ReferentialIntegrityError, match="duplicate"):
            graph.add(_node("Middleware", "chat"))

    def test_same_name_different_kind_is_allowed(self):
        graph = ResourceGraph()
        graph.add(_node("Middleware", "chat"))
        graph.add(_node("Deployment", "chat"))
        graph.validate()
        assert len(graph) == 2

    def test_namespaced_manifest_without_namespace_is_rejected(self):
        graph = ResourceGraph()
        graph.add(Node(kind="Service", name="chat", api_version="v1", body={"metadata": {"name": "chat"}}))
        with pytest.raises(ReferentialIntegrityError, match="sets no metadata.namespace"):
            graph.validate()

    def test_cluster_scoped_manifest_with_namespace_is_rejected(self):
        graph = ResourceGraph()
        graph.add(Node(
            kind="Namespace",
            name="chat",
            api_version="v1",
            namespaced=False,
            body={"metadata": {"name": "chat", "namespace": "default"}},
        ))
        with pytest.raises(ReferentialIntegrityError, match="cluster-scoped"):
            graph.validate()

    def test_cycle_is_rejected(self):
        graph = ResourceGraph()
        graph.add(_node("A", "a", body={"x": Ref("B/b", "name")}))
        graph.add(_node("B", "b", body={"x": Ref("A/a", "name")}))
        with pytest.raises(DependencyCycleError):
            graph.validate()


class TestOrder:
    def test_dependencies_come_first(self):
        graph = ResourceGraph()
        graph.add(_node("Deployment", "chat", body={
            "image": Ref("Image/chat", "name"),
            "ns": Ref("Namespace/chat", "name"),
        }))
        graph.add(_node("Image", "chat"))
        graph.add(_node("Namespace", "chat"))

        keys = [node.key for node in graph.order()]
        assert keys.index("Deployment/chat") > keys.index("Image/chat")
        assert keys.index("Deployment/chat") > keys.index("Namespace/chat")

    def test_ties_are_broken_by_key(self):
        graph = ResourceGraph()
        graph.add(_node("Namespace", "chat"))
        graph.add(_node("Image", "chat"))
        assert [node.key for node in graph.order()] == ["Image/chat", "Namespace/chat"]

    def test_self_reference_is_not_a_dependency(self):
        node = _node("Service", "chat", body={"me": Ref("Service/chat", "name")})
        graph = ResourceGraph()
        graph.add(node)
        assert graph.dependencies(node) == []


class TestRender:
    def test_known_values_are_substituted(self):
        graph = ResourceGraph()
        graph.add(_node("Namespace", "chat"))
        graph.add(Node(
            kind="Service",
            name="chat",
            api_version="v1",
            body={"metadata": {"namespace": Ref("Namespace/chat", "name")}},
        ))
        service = graph.render()[-1]
        assert service == {"apiVersion": "v1", "kind": "Service", "metadata": {"namespace": "chat"}}

    def test_unknown_values_render_as_placeholders(self):
        graph = ResourceGraph()
        graph.add(_node("Image", "chat", outputs={"reference": None}))
        graph.add(_node("Deployment", "chat", body={"image": Ref("Image/chat", "reference")}))
        assert graph.render()[-1]["image"] == "${Image/chat.reference}"

    def test_secrets_are_masked(self):
        graph = ResourceGraph()
        graph.add(_node("Credential", "postgresPassword", outputs={"value": "hunter2"}))
        graph.add(_node("Deployment", "chat", body={
            "password": Ref("Credential/postgresPassword", "value", secret=True),
        }))
        assert graph.render()[-1]["password"] == "<secret:postgresPassword>"
