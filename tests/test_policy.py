"""Tests for identity resolution and environment policy selection."""

import pytest

from chat_topology.errors import ConfigurationError
from chat_topology.identity import compose_namespace, resolve_identity
from chat_topology.policy import HARDENED, TRANSITIONAL, Variant, policy_for


class TestIdentity:
    def test_namespace_equals_name(self):
        identity = resolve_identity("chat")
        assert identity.name == identity.namespace == "chat"

    def test_namespace_node(self):
        node = compose_namespace(resolve_identity("chat"))
        assert node.key == "Namespace/chat"
        assert node.body["metadata"]["name"] == "chat"
        assert not node.namespaced


class TestPolicySelection:
    @pytest.mark.parametrize("name,expected", [
        ("transitional", TRANSITIONAL),
        ("cutover", TRANSITIONAL),
        ("hardened", HARDENED),
        (" Hardened ", HARDENED),
    ])
    def test_known_variants(self, name, expected):
        assert policy_for(name) is expected

    def test_unknown_variant(self):
        with pytest.raises(ConfigurationError, match="staging"):
            policy_for("staging")


class TestPolicies:
    def test_transitional(self):
        assert TRANSITIONAL.variant is Variant.TRANSITIONAL
        assert TRANSITIONAL.accepts_plaintext
        assert TRANSITIONAL.redirect_to_https
        assert (TRANSITIONAL.rate_limit.average, TRANSITIONAL.rate_limit.burst) == (500, 100)
        assert TRANSITIONAL.rate_limit_id(resolve_identity("chat")) == "ratelimit"
        assert TRANSITIONAL.image_cache.cache_from_stages == ("build",)
        assert TRANSITIONAL.image_cache.build_args == {"BUILDKIT_INLINE_CACHE": "1"}

    def test_hardened(self):
        assert HARDENED.variant is Variant.HARDENED
        assert not HARDENED.accepts_plaintext
        assert not HARDENED.redirect_to_https
        assert (HARDENED.rate_limit.average, HARDENED.rate_limit.burst) == (300, 100)
        assert HARDENED.rate_limit_id(resolve_identity("chat")) == "chat"
        assert HARDENED.image_cache.cache_from_stages == ()
