#!/usr/bin/env python3
"""
Render the planned chat manifests as YAML without touching a cluster.
Secrets are masked and values only known after apply show as ${Kind/name.output}.

Usage:
  python3 scripts/render-plan.py [transitional|cutover|hardened] [host]
"""

import sys

from chat_topology.config import DEFAULT_HOST, DEFAULT_SECRET_KEY, Settings
from chat_topology.planner import build_plan
from chat_topology.policy import policy_for
from chat_topology.secrets import StaticSecretProvider

variant = sys.argv[1] if len(sys.argv) > 1 else "transitional"
host = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_HOST

settings = Settings(project="chat", policy=policy_for(variant), host=host)

# The value is never rendered; any placeholder satisfies the requirement.
plan = build_plan(settings, StaticSecretProvider({DEFAULT_SECRET_KEY: "unused"}))

print(plan.to_yaml(), end="")
