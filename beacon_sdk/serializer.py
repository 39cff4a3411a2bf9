# beacon_sdk/serializer.py
# SPDX-License-Identifier: Apache-2.0
"""Reference wire codec: compact JSON wrapped in base58check text."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from .crypto import b58check_decode, b58check_encode


class Serializer:

    def serialize(self, message: Mapping[str, Any]) -> str:
        raw = json.dumps(dict(message), separators=(",", ":"), sort_keys=True)
        return b58check_encode(raw.encode("utf-8"))

    def deserialize(self, encoded: str) -> Dict[str, Any]:
        data = json.loads(b58check_decode(encoded).decode("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("decoded message is not a JSON object")
        return data


__all__ = ["Serializer"]
