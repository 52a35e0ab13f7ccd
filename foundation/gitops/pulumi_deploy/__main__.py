"""
Chat Service Resources

This Pulumi program manages the Kubernetes resources for the chat service.
The cluster itself (and its Traefik ingress controller) is managed elsewhere.

Manages:
- Namespace
- PostgreSQL (Bitnami Helm release)
- Container image (ECR)
- Deployment
- Service (ClusterIP)
- PodDisruptionBudget
- Traefik Middlewares and IngressRoute

Stacks:
- cutover:  plaintext `web` entry point, https redirect, rate limit 500/100
- hardened: TLS-only `websecure` entry point, rate limit 300/100
"""

import pulumi
import pulumi_kubernetes as k8s

from chat_topology import build_plan, load_settings, materialize
from chat_topology.image import EcrImageBuilder
from chat_topology.secrets import ConfigSecretProvider

# ============================================================================
# Configuration
# ============================================================================

config = pulumi.Config()
settings = load_settings(config)

# ============================================================================
# Kubernetes Provider Setup
# ============================================================================

if settings.use_stack_reference:
    # Get kubeconfig output from the infrastructure stack
    infra_stack = pulumi.StackReference(settings.infra_stack_name)
    kubeconfig = infra_stack.require_output("kubeconfig")

    k8s_provider = k8s.Provider(
        "k8s-provider",
        kubeconfig=kubeconfig,
    )
else:
    # Use default kubeconfig (~/.kube/config or KUBECONFIG)
    k8s_provider = None

# ============================================================================
# Plan
# ============================================================================
# Fails here, before anything is registered, when the password secret is
# missing or a route points at something that does not exist.

plan = build_plan(settings, ConfigSecretProvider(config))
pulumi.log.info(
    f"Planned {len(plan.graph)} resources for {plan.identity.name} "
    f"({plan.policy.variant.value}, entry points: {', '.join(plan.policy.entry_points)})"
)

# ============================================================================
# Resources
# ============================================================================

resources = materialize(plan, EcrImageBuilder(), provider=k8s_provider)
name = plan.identity.name

# ============================================================================
# Outputs
# ============================================================================

pulumi.export("namespace", resources.outputs[f"Namespace/{plan.identity.namespace}"]["name"])
pulumi.export("variant", plan.policy.variant.value)
pulumi.export("deployment_name", resources.outputs[f"Deployment/{name}"]["name"])
pulumi.export("service_name", resources.outputs[f"Service/{name}"]["name"])
pulumi.export("pdb_name", resources.outputs[f"PodDisruptionBudget/{name}"]["name"])
pulumi.export("ingress_route_name", resources.outputs[f"IngressRoute/{name}"]["name"])
pulumi.export("middlewares", [node.name for node in plan.graph.of_kind("Middleware")])
pulumi.export("entry_points", list(plan.policy.entry_points))
pulumi.export("image", resources.outputs[f"Image/{name}"]["reference"])
pulumi.export("database_host", resources.outputs[f"HelmRelease/{settings.database.release_name}"]["hostname"])
pulumi.export("ingress_host", plan.host)

pulumi.export("using_stack_reference", settings.use_stack_reference)
if settings.use_stack_reference:
    pulumi.export("infra_stack_referenced", settings.infra_stack_name)
