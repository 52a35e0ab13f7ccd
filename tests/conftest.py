"""Shared fixtures for chat topology tests.

Plans are built from plain ``Settings`` and a static secret provider so no
Pulumi engine or cluster is involved.
"""

import pytest

from chat_topology.config import Settings
from chat_topology.planner import build_plan
from chat_topology.policy import HARDENED, TRANSITIONAL
from chat_topology.secrets import StaticSecretProvider

SECRETS = {"postgresPassword": "hunter2"}


def make_settings(policy=TRANSITIONAL, **overrides):
    return Settings(project="chat", policy=policy, **overrides)


def make_plan(policy=TRANSITIONAL, secrets=None, **overrides):
    provider = StaticSecretProvider(SECRETS if secrets is None else secrets)
    return build_plan(make_settings(policy, **overrides), provider)


@pytest.fixture
def transitional_plan():
    return make_plan(TRANSITIONAL)


@pytest.fixture
def hardened_plan():
    return make_plan(HARDENED)


@pytest.fixture(params=[TRANSITIONAL, HARDENED], ids=["transitional", "hardened"])
def any_plan(request):
    return make_plan(request.param)


def manifest(plan, kind, name=None):
    """Rendered document for one resource of ``plan``."""
    name = name or plan.identity.name
    for document in plan.render():
        if document["kind"] != kind:
            continue
        if document.get("metadata", {}).get("name", document.get("name")) == name:
            return document
    raise AssertionError(f"{kind}/{name} not rendered")
