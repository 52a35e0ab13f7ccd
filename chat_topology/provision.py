"""
Materializer

Walks a validated plan in dependency order and registers Pulumi resources.
Each reference is replaced by the live output of the node it points at, and
``depends_on`` mirrors the graph edges, so the engine waits for every
predecessor and stops dependents when one fails.
"""

import pulumi
import pulumi_kubernetes as k8s

from chat_topology.errors import TopologyError
from chat_topology.graph import walk


def _after(output, value):
    """``value``, released only once ``output`` has resolved."""
    return output.apply(lambda _: value)


def _namespace(node, body, opts, context):
    namespace = k8s.core.v1.Namespace(
        node.name,
        metadata=body["metadata"],
        opts=opts,
    )
    return namespace, {"name": namespace.metadata["name"]}


def _credential(node, body, opts, context):
    return None, {"value": context.plan.credentials[node.name].value}


def _helm_release(node, body, opts, context):
    release = k8s.helm.v3.Release(
        node.name,
        k8s.helm.v3.ReleaseArgs(
            name=node.name,
            chart=body["chart"],
            version=body["version"],
            namespace=body["namespace"],
            repository_opts=k8s.helm.v3.RepositoryOptsArgs(
                repo=body["repository"],
            ),
            values=body["values"],
        ),
        opts=opts,
    )
    hostname = release.name.apply(lambda name: f"{name}-postgresql")
    return release, {
        "name": release.name,
        "hostname": hostname,
        "secretName": hostname,
    }


def _image(node, body, opts, context):
    reference = context.image_builder.build(
        node.name,
        body["context"],
        body["dockerfile"],
        body["cacheFrom"]["stages"],
        body["args"],
    )
    return None, {"reference": reference}


def _deployment(node, body, opts, context):
    deployment = k8s.apps.v1.Deployment(
        node.name,
        metadata=body["metadata"],
        spec=body["spec"],
        opts=opts,
    )
    name = deployment.metadata["name"]
    return deployment, {
        "name": name,
        "selector": _after(name, node.outputs["selector"]),
        "matchLabels": _after(name, node.outputs["matchLabels"]),
    }


def _service(node, body, opts, context):
    service = k8s.core.v1.Service(
        node.name,
        metadata=body["metadata"],
        spec=body["spec"],
        opts=opts,
    )
    return service, {"name": service.metadata["name"]}


def _disruption_budget(node, body, opts, context):
    pdb = k8s.policy.v1.PodDisruptionBudget(
        node.name,
        metadata=body["metadata"],
        spec=body["spec"],
        opts=opts,
    )
    return pdb, {"name": pdb.metadata["name"]}


def _custom_resource(node, body, opts, context):
    resource = k8s.apiextensions.CustomResource(
        node.name,
        api_version=node.api_version,
        kind=node.kind,
        metadata=body["metadata"],
        spec=body["spec"],
        opts=opts,
    )
    return resource, {"name": resource.metadata["name"]}


HANDLERS = {
    "Namespace": _namespace,
    "Credential": _credential,
    "HelmRelease": _helm_release,
    "Image": _image,
    "Deployment": _deployment,
    "Service": _service,
    "PodDisruptionBudget": _disruption_budget,
    "Middleware": _custom_resource,
    "IngressRoute": _custom_resource,
}


class Materialized:
    """Registered resources and live outputs, keyed like the graph."""

    def __init__(self, plan, image_builder, provider=None):
        self.plan = plan
        self.image_builder = image_builder
        self.provider = provider
        self.resources = {}
        self.outputs = {}

    def resolve(self, ref):
        return self.outputs[ref.key][ref.output]

    def options(self, node):
        depends_on = [
            self.resources[key]
            for key in self.plan.graph.dependencies(node)
            if self.resources.get(key) is not None
        ]
        return pulumi.ResourceOptions(provider=self.provider, depends_on=depends_on)

    def __getitem__(self, key):
        return self.resources[key]


def materialize(plan, image_builder, provider=None):
    """Register every node of ``plan``; returns the ``Materialized`` record."""
    context = Materialized(plan, image_builder, provider)

    for node in plan.graph.order():
        handler = HANDLERS.get(node.kind)
        if handler is None:
            raise TopologyError(f"no materializer for {node.key}")

        body = walk(node.body, context.resolve)
        resource, live = handler(node, body, context.options(node), context)

        outputs = {name: value for name, value in node.outputs.items() if value is not None}
        outputs.update(live)
        context.resources[node.key] = resource
        context.outputs[node.key] = outputs
        pulumi.log.debug(f"Registered {node.key}")

    return context
