"""
Workload Composer

Assembles the chat container and wraps it in a Deployment. The rollout
never drops below full capacity: a new replica must be scheduled before an
old one is retired, so a cluster without headroom stalls the rollout
instead of degrading it.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from chat_topology.errors import PolicyConflictError, ReferentialIntegrityError
from chat_topology.graph import Node

REPLICAS = 2
HTTP_PORT = 8080
ADMIN_PORT = 8081
LIVENESS_GRACE_SECONDS = 30


@dataclass(frozen=True)
class ContainerPort:
    name: str
    number: int


@dataclass(frozen=True)
class Probe:
    path: str
    port: str
    initial_delay_seconds: Optional[int] = None

    def as_manifest(self):
        probe = {"httpGet": {"path": self.path, "port": self.port}}
        if self.initial_delay_seconds is not None:
            probe["initialDelaySeconds"] = self.initial_delay_seconds
        return probe


@dataclass(frozen=True)
class SecretKeyRef:
    """Env value read from a key of a Kubernetes Secret."""

    name: object
    key: object

    def as_manifest(self):
        return {"secretKeyRef": {"name": self.name, "key": self.key}}


def env_var(name, value):
    if isinstance(value, SecretKeyRef):
        return {"name": name, "valueFrom": value.as_manifest()}
    return {"name": name, "value": value}


@dataclass
class ContainerSpec:
    name: str
    image: object
    env: List[Tuple[str, object]]
    ports: Tuple[ContainerPort, ...]
    readiness: Probe
    liveness: Probe
    resources: Optional[object] = None
    pre_stop_delay_seconds: Optional[int] = None

    def validate(self):
        names = {port.name for port in self.ports}
        for probe in (self.readiness, self.liveness):
            if probe.port not in names:
                raise ReferentialIntegrityError(
                    f"probe {probe.path} targets port '{probe.port}', "
                    f"container {self.name} declares {sorted(names)}"
                )

    def as_manifest(self):
        container = {
            "name": self.name,
            "image": self.image,
            "env": [env_var(name, value) for name, value in self.env],
            "ports": [{"name": port.name, "containerPort": port.number} for port in self.ports],
            "readinessProbe": self.readiness.as_manifest(),
            "livenessProbe": self.liveness.as_manifest(),
        }
        if self.resources is not None:
            container["resources"] = self.resources.as_manifest()
        if self.pre_stop_delay_seconds is not None:
            # Let the edge stop routing before the process sees SIGTERM.
            container["lifecycle"] = {
                "preStop": {"exec": {"command": ["/bin/sleep", str(self.pre_stop_delay_seconds)]}},
            }
        return container


@dataclass(frozen=True)
class RolloutPolicy:
    max_unavailable: int = 0
    max_surge: int = 1

    def validate(self):
        if self.max_unavailable == 0 and self.max_surge < 1:
            raise PolicyConflictError("rollout with maxUnavailable=0 needs maxSurge >= 1 to make progress")

    def as_manifest(self):
        return {
            "type": "RollingUpdate",
            "rollingUpdate": {
                "maxUnavailable": self.max_unavailable,
                "maxSurge": self.max_surge,
            },
        }


@dataclass
class WorkloadSpec:
    name: str
    selector: dict
    containers: List[ContainerSpec]
    replicas: int = REPLICAS
    rollout: RolloutPolicy = field(default_factory=RolloutPolicy)

    @property
    def ports(self):
        """Container ports across the pod, in declaration order."""
        return tuple(port for container in self.containers for port in container.ports)


@dataclass
class Workload:
    spec: WorkloadSpec
    node: Node


def compose_container(identity, policy, image, database):
    container = ContainerSpec(
        name=identity.name,
        image=image.ref("reference"),
        env=[
            ("CHAT_PG_HOST", database.ref("hostname")),
            # Read from the chart's Secret so the password stays out of the pod spec.
            ("CHAT_PG_PASSWORD", SecretKeyRef(database.ref("secretName"), database.ref("passwordKey"))),
        ],
        ports=(
            ContainerPort("http", HTTP_PORT),
            ContainerPort("admin", ADMIN_PORT),
        ),
        readiness=Probe("/check", "http"),
        liveness=Probe("/healthz", "admin", initial_delay_seconds=LIVENESS_GRACE_SECONDS),
        resources=policy.resources,
        pre_stop_delay_seconds=policy.pre_stop_delay_seconds,
    )
    container.validate()
    return container


def compose_workload(identity, namespace, containers, rollout=None):
    spec = WorkloadSpec(
        name=identity.name,
        selector=identity.selector,
        containers=list(containers),
        rollout=rollout or RolloutPolicy(),
    )
    spec.rollout.validate()
    for container in spec.containers:
        container.validate()

    node = Node(
        kind="Deployment",
        name=identity.name,
        api_version="apps/v1",
        body={
            "metadata": {
                "name": identity.name,
                "namespace": namespace.ref("name"),
                "labels": identity.labels,
            },
            "spec": {
                "replicas": spec.replicas,
                "selector": {"matchLabels": spec.selector},
                "strategy": spec.rollout.as_manifest(),
                "template": {
                    "metadata": {"labels": identity.labels},
                    "spec": {
                        "containers": [container.as_manifest() for container in spec.containers],
                    },
                },
            },
        },
        outputs={
            "name": identity.name,
            "selector": {"matchLabels": spec.selector},
            "matchLabels": spec.selector,
        },
    )
    return Workload(spec=spec, node=node)
