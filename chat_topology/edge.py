"""
Edge Policy Composer

Builds the Traefik middlewares and the IngressRoute for the chat host.
Middleware chains run in list order, so the https redirect always comes
before rate limiting. Services are addressed by port name; the number is
looked up on the Service, never taken by position.
"""

from dataclasses import dataclass
from typing import Tuple

from chat_topology.errors import InvalidRouteError, ReferentialIntegrityError
from chat_topology.graph import Node

METRICS_PATH = "/metrics"


@dataclass(frozen=True)
class MiddlewareSpec:
    name: str
    spec: dict


@dataclass(frozen=True)
class RouteRule:
    host: str
    path_prefix: str
    middlewares: Tuple[str, ...]
    service: str
    port_name: str

    @property
    def match(self):
        return f"Host(`{self.host}`) && PathPrefix(`{self.path_prefix}`)"


def redirect_middleware_name(host):
    return f"{host.split('.')[0]}-http-to-https"


def compose_middlewares(identity, policy, host):
    """Middlewares in the order they apply to the root route."""
    middlewares = []
    if policy.redirect_to_https:
        middlewares.append(MiddlewareSpec(
            name=redirect_middleware_name(host),
            spec={"redirectScheme": {"scheme": "https", "permanent": True}},
        ))
    middlewares.append(MiddlewareSpec(
        name=policy.rate_limit_id(identity),
        spec=policy.rate_limit.as_spec(),
    ))
    return middlewares


def compose_routes(identity, policy, host, service):
    rate_limit = policy.rate_limit_id(identity)
    root_chain = (rate_limit,)
    if policy.redirect_to_https:
        root_chain = (redirect_middleware_name(host),) + root_chain

    routes = [
        RouteRule(host, "/", root_chain, service.name, "http"),
        RouteRule(host, METRICS_PATH, (rate_limit,), service.name, "admin"),
    ]
    validate_routes(routes)
    return routes


def validate_routes(routes):
    seen = set()
    for route in routes:
        if not route.host:
            raise InvalidRouteError(f"route {route.path_prefix} has no host")
        if not route.path_prefix.startswith("/"):
            raise InvalidRouteError(f"path prefix '{route.path_prefix}' must start with '/'")
        if (route.host, route.path_prefix) in seen:
            raise InvalidRouteError(f"duplicate route for {route.match}")
        seen.add((route.host, route.path_prefix))


def middleware_node(namespace, middleware, identity, api_version):
    return Node(
        kind="Middleware",
        name=middleware.name,
        api_version=api_version,
        body={
            "metadata": {
                "name": middleware.name,
                "namespace": namespace.ref("name"),
                "labels": identity.labels,
            },
            "spec": middleware.spec,
        },
        outputs={"name": middleware.name},
    )


def _middleware_ref(nodes, name):
    if name not in nodes:
        raise ReferentialIntegrityError(f"route references unknown middleware '{name}'")
    return nodes[name].ref("name")


def ingress_route_node(identity, policy, namespace, service, middlewares, routes, api_version, tls_cert_resolver=None):
    nodes = {node.name: node for node in middlewares}

    spec = {
        "entryPoints": list(policy.entry_points),
        "routes": [
            {
                "match": route.match,
                "kind": "Rule",
                "middlewares": [{"name": _middleware_ref(nodes, name)} for name in route.middlewares],
                "services": [
                    {"name": service.node.ref("name"), "port": service.port_ref(route.port_name)},
                ],
            }
            for route in routes
        ],
    }
    if not policy.accepts_plaintext:
        # An empty tls block terminates TLS with the default certificate.
        spec["tls"] = {"certResolver": tls_cert_resolver} if tls_cert_resolver else {}

    return Node(
        kind="IngressRoute",
        name=identity.name,
        api_version=api_version,
        body={
            "metadata": {
                "name": identity.name,
                "namespace": namespace.ref("name"),
                "labels": identity.labels,
            },
            "spec": spec,
        },
        outputs={"name": identity.name},
    )


def compose_edge(identity, policy, namespace, service, host, api_version, tls_cert_resolver=None):
    """Middleware nodes followed by the IngressRoute node."""
    middlewares = [
        middleware_node(namespace, middleware, identity, api_version)
        for middleware in compose_middlewares(identity, policy, host)
    ]
    routes = compose_routes(identity, policy, host, service)
    route = ingress_route_node(
        identity, policy, namespace, service, middlewares, routes, api_version, tls_cert_resolver,
    )
    return middlewares + [route]
