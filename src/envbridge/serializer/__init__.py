"""Shell serializers - render a change set as destination-shell statements."""

from __future__ import annotations

from envbridge.serializer.fish import FishSerializer, quote, serialize
from envbridge.serializer.models import SerializationResult, Statement, StatementKind

__all__ = [
    "FishSerializer",
    "SerializationResult",
    "Statement",
    "StatementKind",
    "quote",
    "serialize",
]
