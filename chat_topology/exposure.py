"""
Service Exposer and Availability Guard.

Both derive from the Deployment: the Service from its selector and
container ports, the PodDisruptionBudget from its selector alone.
"""

from dataclasses import dataclass
from typing import Tuple

from chat_topology.graph import Node

MAX_DISRUPTED = 1


@dataclass(frozen=True)
class ServicePort:
    name: str
    port: int


@dataclass
class ServiceEndpoint:
    name: str
    ports: Tuple[ServicePort, ...]
    node: Node

    def port_ref(self, port_name):
        return self.node.ref(f"port/{port_name}")


def compose_service(identity, namespace, workload):
    """ClusterIP service whose ports follow the container declaration order."""
    ports = tuple(ServicePort(port.name, port.number) for port in workload.spec.ports)
    deployment = workload.node

    outputs = {"name": identity.name}
    outputs.update({f"port/{port.name}": port.port for port in ports})

    node = Node(
        kind="Service",
        name=identity.name,
        api_version="v1",
        body={
            "metadata": {
                "name": identity.name,
                "namespace": namespace.ref("name"),
                "labels": identity.labels,
            },
            "spec": {
                "type": "ClusterIP",
                "selector": deployment.ref("matchLabels"),
                "ports": [
                    {"name": port.name, "port": port.port, "targetPort": port.name, "protocol": "TCP"}
                    for port in ports
                ],
            },
        },
        outputs=outputs,
    )
    return ServiceEndpoint(name=identity.name, ports=ports, node=node)


def compose_disruption_budget(identity, namespace, deployment):
    return Node(
        kind="PodDisruptionBudget",
        name=identity.name,
        api_version="policy/v1",
        body={
            "metadata": {
                "name": identity.name,
                "namespace": namespace.ref("name"),
                "labels": identity.labels,
            },
            "spec": {
                "maxUnavailable": MAX_DISRUPTED,
                "selector": deployment.ref("selector"),
            },
        },
        outputs={"name": identity.name},
    )
