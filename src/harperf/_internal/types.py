"""Shared type aliases for harperf."""

from __future__ import annotations

from typing import Any

# Decoded JSON object (HAR entry, report document, ...).
JsonObject = dict[str, Any]

# Caller-supplied custom metrics, passed through the engine untouched.
MetricsPayload = dict[str, Any]
