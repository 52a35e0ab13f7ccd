"""
Identity Resolver

The name/namespace pair computed here scopes every other resource. It is
resolved once per plan and passed explicitly to every composer.
"""

from dataclasses import dataclass

from chat_topology.graph import Node


@dataclass(frozen=True)
class Identity:
    name: str
    namespace: str

    @property
    def selector(self):
        """Labels linking the workload to its service and disruption budget."""
        return {"app": self.name}

    @property
    def labels(self):
        return {
            "app": self.name,
            "managed-by": "pulumi",
        }


def resolve_identity(project_name):
    return Identity(name=project_name, namespace=project_name)


def compose_namespace(identity):
    return Node(
        kind="Namespace",
        name=identity.namespace,
        api_version="v1",
        namespaced=False,
        body={
            "metadata": {
                "name": identity.namespace,
                "labels": {**identity.labels, "name": identity.namespace},
            },
        },
        outputs={"name": identity.namespace},
    )
