"""
Planner

Wires every composer into one ``ResourceGraph``. The credential is required
before the first node exists and the finished graph is validated before it is
returned, so a broken plan never reaches the cluster.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import yaml

from chat_topology.database import compose_database
from chat_topology.edge import compose_edge
from chat_topology.exposure import compose_disruption_budget, compose_service
from chat_topology.graph import ResourceGraph
from chat_topology.identity import Identity, compose_namespace, resolve_identity
from chat_topology.image import compose_image
from chat_topology.policy import EnvironmentPolicy
from chat_topology.secrets import Credential, credential_node
from chat_topology.workload import compose_container, compose_workload

logger = logging.getLogger(__name__)


@dataclass
class Plan:
    identity: Identity
    policy: EnvironmentPolicy
    host: str
    graph: ResourceGraph
    credentials: Dict[str, Credential]

    def node(self, kind, name=None):
        return self.graph.get(f"{kind}/{name or self.identity.name}")

    def render(self):
        return self.graph.render()

    def to_yaml(self):
        return yaml.safe_dump_all(self.render(), sort_keys=True, default_flow_style=False)


def build_plan(settings, secrets):
    identity = resolve_identity(settings.project)
    policy = settings.policy
    credential = secrets.require(settings.secret_key)

    graph = ResourceGraph()
    namespace = graph.add(compose_namespace(identity))
    secret = graph.add(credential_node(credential))
    database = graph.add(compose_database(namespace, secret, settings.database))
    image = graph.add(compose_image(identity, settings.build, policy.image_cache))

    container = compose_container(identity, policy, image, database)
    workload = compose_workload(identity, namespace, [container])
    graph.add(workload.node)

    service = compose_service(identity, namespace, workload)
    graph.add(service.node)
    graph.add(compose_disruption_budget(identity, namespace, workload.node))

    for node in compose_edge(
        identity,
        policy,
        namespace,
        service,
        settings.host,
        settings.routing_api_version,
        settings.tls_cert_resolver,
    ):
        graph.add(node)

    graph.validate()
    logger.info(
        "Planned %d resources for %s (%s, entry points %s)",
        len(graph),
        identity.name,
        policy.variant.value,
        ", ".join(policy.entry_points),
    )

    return Plan(
        identity=identity,
        policy=policy,
        host=settings.host,
        graph=graph,
        credentials={credential.key: credential},
    )
