from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from pos_billing.errors import ValidationError

DEFAULT_API_URL = "http://localhost:5000"
DEFAULT_TIMEOUT = 10.0


@dataclass(slots=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    receipt_dir: Optional[str] = None
    plan: str = "free"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        raw_timeout = env.get("POS_API_TIMEOUT", "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ValidationError(f"POS_API_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from None
        if timeout <= 0:
            raise ValidationError("POS_API_TIMEOUT must be > 0")

        return cls(
            api_url=env.get("POS_API_URL") or DEFAULT_API_URL,
            token=env.get("POS_API_TOKEN") or None,
            timeout=timeout,
            receipt_dir=env.get("POS_RECEIPT_DIR") or None,
            plan=env.get("POS_PLAN") or "free",
        )
