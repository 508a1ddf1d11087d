"""Decoding of the client-identification QR code shown in the client app."""

from __future__ import annotations

import json

CLIENT_QR_TYPE = "starspharm_client"


def parse_client_qr(payload: str) -> str:
    """Return the user ID carried by a client QR payload.

    Accepts the compact ``{"u": "<id>"}`` form and the longer
    ``{"userId": "<id>", "type": "starspharm_client", ...}`` form.

    Raises:
        ValueError: If the payload is not a client QR code.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"QR payload is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("QR payload is not a JSON object")

    if "u" in data:
        user_id = data["u"]
    elif "userId" in data:
        if data.get("type", CLIENT_QR_TYPE) != CLIENT_QR_TYPE:
            raise ValueError(f"unexpected QR type: {data.get('type')!r}")
        user_id = data["userId"]
    else:
        raise ValueError("QR payload carries no client identifier")

    if isinstance(user_id, int) and not isinstance(user_id, bool):
        user_id = str(user_id)
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("QR payload has an empty client identifier")
    return user_id.strip()
