"""
Secret Provider

The database password is required exactly once per plan. The resulting
``Credential`` is a handle: composers only ever embed a secret ``Ref`` to its
graph node, and the materializer hands the opaque value to Pulumi.
"""

from chat_topology.errors import MissingSecretError
from chat_topology.graph import Node


class Credential:
    __slots__ = ("key", "_value")

    def __init__(self, key, value):
        self.key = key
        self._value = value

    @property
    def value(self):
        return self._value

    def __repr__(self):
        return f"Credential(key={self.key!r}, value=<secret>)"


class ConfigSecretProvider:
    """Reads secrets from the stack's encrypted configuration."""

    def __init__(self, config):
        self._config = config
        self._resolved = {}

    def require(self, key):
        if key in self._resolved:
            return self._resolved[key]
        value = self._config.get_secret(key)
        if value is None:
            raise MissingSecretError(key)
        credential = self._resolved[key] = Credential(key, value)
        return credential


class StaticSecretProvider:
    """Secrets from a plain mapping; used for offline rendering."""

    def __init__(self, values):
        self._values = dict(values)

    def require(self, key):
        if self._values.get(key) is None:
            raise MissingSecretError(key)
        return Credential(key, self._values[key])


def credential_node(credential):
    return Node(
        kind="Credential",
        name=credential.key,
        namespaced=False,
        body={"key": credential.key},
        outputs={"value": None},
    )
