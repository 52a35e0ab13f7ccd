"""
Stack configuration.

Reads ``pulumi.Config`` once and freezes the result into ``Settings`` so the
planner never touches configuration directly.
"""

from dataclasses import dataclass, field
from typing import Optional

import pulumi

from chat_topology.policy import EnvironmentPolicy, TRANSITIONAL, policy_for

ROUTING_API_VERSION = "traefik.containo.us/v1alpha1"
DEFAULT_HOST = "chat.aaronbatilo.dev"
DEFAULT_SECRET_KEY = "postgresPassword"


@dataclass(frozen=True)
class DatabaseSettings:
    release_name: str = "postgres"
    chart: str = "postgresql"
    chart_version: str = "10.3.11"
    repository: str = "https://charts.bitnami.com/bitnami"
    storage_class: str = "gp2"
    zone: Optional[str] = "us-west-2b"

    @property
    def hostname(self):
        return f"{self.release_name}-postgresql"


@dataclass(frozen=True)
class BuildSettings:
    # Relative to the Pulumi program directory.
    context: str = "../../.."
    dockerfile: str = "../../../Dockerfile"


@dataclass(frozen=True)
class Settings:
    project: str
    policy: EnvironmentPolicy = TRANSITIONAL
    host: str = DEFAULT_HOST
    secret_key: str = DEFAULT_SECRET_KEY
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    build: BuildSettings = field(default_factory=BuildSettings)
    routing_api_version: str = ROUTING_API_VERSION
    tls_cert_resolver: Optional[str] = None
    use_stack_reference: bool = False
    infra_stack_name: str = "foundation/chat"


def load_settings(config=None, project=None):
    config = config or pulumi.Config()
    project = project or pulumi.get_project()

    policy = policy_for(config.get("variant") or "transitional")

    # An empty zone disables database placement.
    zone = config.get("database_zone")
    if zone is None:
        zone = DatabaseSettings.zone

    database = DatabaseSettings(
        release_name=config.get("database_release") or DatabaseSettings.release_name,
        chart_version=config.get("chart_version") or DatabaseSettings.chart_version,
        storage_class=config.get("storage_class") or DatabaseSettings.storage_class,
        zone=zone or None,
    )

    build = BuildSettings(
        context=config.get("build_context") or BuildSettings.context,
        dockerfile=config.get("dockerfile") or BuildSettings.dockerfile,
    )

    use_stack_reference = config.get_bool("use_stack_reference")
    if use_stack_reference is None:
        use_stack_reference = False

    return Settings(
        project=project,
        policy=policy,
        host=config.get("host") or DEFAULT_HOST,
        secret_key=config.get("secret_key") or DEFAULT_SECRET_KEY,
        database=database,
        build=build,
        routing_api_version=config.get("routing_api_version") or ROUTING_API_VERSION,
        tls_cert_resolver=config.get("tls_cert_resolver"),
        use_stack_reference=use_stack_reference,
        infra_stack_name=config.get("infra_stack_name") or "foundation/chat",
    )
