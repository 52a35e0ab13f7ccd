"""
Errors raised while planning the chat topology.

Every error aborts planning before the Pulumi engine registers anything.
Nothing here is retried locally; the engine reports the message verbatim.
"""


class TopologyError(Exception):
    """Base class for all planning failures."""


class ConfigurationError(TopologyError):
    """Stack configuration holds a value the planner cannot use."""


class MissingPreconditionError(TopologyError):
    """A required input (secret or upstream output) is absent."""


class MissingSecretError(MissingPreconditionError):
    def __init__(self, key):
        super().__init__(f"required secret '{key}' is not set; run `pulumi config set --secret {key} ...`")
        self.key = key


class ReferentialIntegrityError(TopologyError):
    """A node points at a node or output that is not in the graph."""


class InvalidRouteError(TopologyError):
    """Route rules are malformed or overlap."""


class DependencyCycleError(TopologyError):
    """The resource graph is not acyclic."""


class PolicyConflictError(TopologyError):
    """A policy combination that can never be satisfied by the cluster."""
