"""
Database Provisioner

PostgreSQL comes from the Bitnami chart, installed as a Helm release inside
the application namespace. The chart names its service
``<release>-postgresql`` and stores the password in a Secret of the same
name, which is all the workload needs to reach it.
"""

from chat_topology.graph import Node

# Key of the application password in the chart-generated Secret.
PASSWORD_KEY = "postgresql-password"


def chart_values(credential, settings):
    password = credential.ref("value", secret=True)
    values = {
        "global": {"storageClass": settings.storage_class},
        "postgresqlPassword": password,
        "postgresqlPostgresPassword": password,
        "rbac": {"create": True},
        "volumePermissions": {"enabled": True},
    }
    if settings.zone:
        values["primary"] = {
            "nodeSelector": {"topology.kubernetes.io/zone": settings.zone},
        }
    return values


def compose_database(namespace, credential, settings):
    """Helm release node; ``credential`` is the credential's graph node."""
    return Node(
        kind="HelmRelease",
        name=settings.release_name,
        body={
            "chart": settings.chart,
            "version": settings.chart_version,
            "repository": settings.repository,
            "namespace": namespace.ref("name"),
            "values": chart_values(credential, settings),
        },
        outputs={
            "name": settings.release_name,
            "hostname": settings.hostname,
            "secretName": settings.hostname,
            "passwordKey": PASSWORD_KEY,
        },
    )
