from dataclasses import dataclass
from typing import Any

from idlemmo.domain.models.payload import require_int, require_mapping, require_str


def mask_email(email: str) -> str:
    local, _, domain = str(email or "").partition("@")
    return f"{local[:3]}...@{domain}"


@dataclass
class Account:
    id: int
    email: str
    api_token: str
    cookie_str: str

    @classmethod
    def from_payload(cls, payload: Any) -> "Account":
        context = "account"
        data = require_mapping(payload, context)
        return cls(
            id=require_int(data, "id", context),
            email=require_str(data, "email", context),
            api_token=require_str(data, "api_token", context),
            cookie_str=require_str(data, "cookie_str", context),
        )

    @property
    def masked_email(self) -> str:
        return mask_email(self.email)
