"""
Resource graph for the chat topology.

Nodes never hold another node's values directly. They embed ``Ref`` markers
pointing at a named output of another node, and the graph derives apply
order from those markers. Rendering substitutes the values known at plan
time; the materializer substitutes live Pulumi outputs instead.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from chat_topology.errors import DependencyCycleError, ReferentialIntegrityError


@dataclass(frozen=True)
class Ref:
    """Named output of another node in the graph."""

    key: str
    output: str
    secret: bool = False

    def placeholder(self):
        if self.secret:
            return f"<secret:{self.key.split('/', 1)[-1]}>"
        return "${" + f"{self.key}.{self.output}" + "}"


@dataclass
class Node:
    kind: str
    name: str
    body: Dict[str, Any]
    # Output name -> value known at plan time (None until apply).
    outputs: Dict[str, Any] = field(default_factory=dict)
    api_version: Optional[str] = None
    namespaced: bool = True
    depends_on: Tuple[str, ...] = ()

    @property
    def key(self):
        return f"{self.kind}/{self.name}"

    def ref(self, output, secret=False):
        if output not in self.outputs:
            raise ReferentialIntegrityError(
                f"{self.key} has no output '{output}' (known: {sorted(self.outputs)})"
            )
        return Ref(self.key, output, secret=secret)


def walk(value, fn: Callable[[Ref], Any]):
    """Copy ``value`` replacing every ``Ref`` with ``fn(ref)``."""
    if isinstance(value, Ref):
        return fn(value)
    if isinstance(value, dict):
        return {k: walk(v, fn) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [walk(v, fn) for v in value]
    return value


def references(value) -> List[Ref]:
    found = []

    def collect(ref):
        found.append(ref)
        return ref

    walk(value, collect)
    return found


class ResourceGraph:
    """Insertion-ordered set of nodes keyed by ``Kind/name``."""

    def __init__(self):
        self._nodes: Dict[str, Node] = {}

    def add(self, node):
        if node.key in self._nodes:
            raise ReferentialIntegrityError(f"duplicate resource identity {node.key}")
        self._nodes[node.key] = node
        return node

    def get(self, key):
        try:
            return self._nodes[key]
        except KeyError:
            raise ReferentialIntegrityError(f"no resource {key} in the graph") from None

    def __contains__(self, key):
        return key in self._nodes

    def __iter__(self):
        return iter(self._nodes.values())

    def __len__(self):
        return len(self._nodes)

    def of_kind(self, kind):
        return [node for node in self if node.kind == kind]

    def dependencies(self, node):
        """Keys this node must wait for: referenced nodes plus explicit depends_on."""
        keys = {ref.key for ref in references(node.body)}
        keys.update(node.depends_on)
        keys.discard(node.key)
        return sorted(keys)

    def validate(self):
        """Check every reference resolves, then check the graph is acyclic."""
        for node in self:
            for ref in references(node.body):
                target = self._nodes.get(ref.key)
                if target is None:
                    raise ReferentialIntegrityError(f"{node.key} references unknown resource {ref.key}")
                if ref.output not in target.outputs:
                    raise ReferentialIntegrityError(
                        f"{node.key} references unknown output '{ref.output}' of {ref.key}"
                    )
            for key in node.depends_on:
                if key not in self._nodes:
                    raise ReferentialIntegrityError(f"{node.key} depends on unknown resource {key}")
            self._check_scope(node)
        self.order()

    @staticmethod
    def _check_scope(node):
        # Only Kubernetes manifests carry metadata.
        if node.api_version is None:
            return
        has_namespace = "namespace" in node.body.get("metadata", {})
        if node.namespaced and not has_namespace:
            raise ReferentialIntegrityError(f"{node.key} is namespaced but sets no metadata.namespace")
        if not node.namespaced and has_namespace:
            raise ReferentialIntegrityError(f"{node.key} is cluster-scoped but sets metadata.namespace")

    def order(self) -> List[Node]:
        """Dependency order; ties are broken by key so the result is stable."""
        pending = {key: set(self.dependencies(node)) for key, node in self._nodes.items()}
        ordered = []
        while pending:
            ready = sorted(key for key, deps in pending.items() if not deps)
            if not ready:
                raise DependencyCycleError(f"dependency cycle among {sorted(pending)}")
            for key in ready:
                del pending[key]
                ordered.append(self._nodes[key])
            for deps in pending.values():
                deps.difference_update(ready)
        return ordered

    def known_value(self, ref):
        if ref.secret:
            return ref.placeholder()
        value = self.get(ref.key).outputs.get(ref.output)
        return ref.placeholder() if value is None else value

    def render(self) -> List[Dict[str, Any]]:
        """Plan-time manifests in apply order, secrets masked."""
        documents = []
        for node in self.order():
            body = walk(node.body, self.known_value)
            if node.api_version is not None:
                documents.append({"apiVersion": node.api_version, "kind": node.kind, **body})
            else:
                documents.append({"kind": node.kind, "name": node.name, **body})
        return documents
