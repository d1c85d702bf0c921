"""Creation and assertion options for the platform credential API.

The browser's ``navigator.credentials`` is reached through a
``PlatformAuthenticator``; this module only builds what is handed to it and
turns its answers into a storable descriptor.
"""
from __future__ import annotations

import base64
import json
import secrets
from dataclasses import dataclass
from typing import Any, Protocol

from fundtrack.core.config import ClientSettings

ES256 = -7
CREATE_TIMEOUT_MS = 60000
GET_TIMEOUT_MS = 20000


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    pad = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + pad)


def generate_challenge(length: int = 32) -> bytes:
    return secrets.token_bytes(length)


def rp_id_for(hostname: str, deployment_host: str) -> str:
    return "localhost" if hostname == "localhost" else deployment_host


@dataclass(frozen=True)
class PublicKeyCredential:
    id: str
    raw_id: bytes
    type: str = "public-key"


@dataclass(frozen=True)
class CredentialDescriptor:
    id: str
    raw_id: str
    type: str = "public-key"

    @classmethod
    def from_credential(cls, cred: PublicKeyCredential) -> "CredentialDescriptor":
        return cls(id=cred.id, raw_id=b64url_encode(cred.raw_id), type=cred.type)

    def to_json(self) -> str:
        return json.dumps({"id": self.id, "rawId": self.raw_id, "type": self.type})

    @classmethod
    def from_json(cls, value: str) -> "CredentialDescriptor":
        data = json.loads(value)
        return cls(id=data["id"], raw_id=data["rawId"], type=data.get("type", "public-key"))


class PlatformAuthenticator(Protocol):
    def create(self, public_key: dict[str, Any]) -> PublicKeyCredential:
        """Create a platform credential; raise CapabilityError when unsupported or declined."""
        ...

    def get(self, public_key: dict[str, Any]) -> PublicKeyCredential | None:
        """Return an assertion, or None when no matching credential exists."""
        ...


def creation_options(cfg: ClientSettings, rp_id: str, challenge: bytes | None = None) -> dict[str, Any]:
    return {
        "challenge": challenge or generate_challenge(),
        "rp": {"name": cfg.rp_name, "id": rp_id},
        "user": {
            "id": cfg.user_handle.encode("utf-8"),
            "name": cfg.user_name,
            "displayName": cfg.user_display_name,
        },
        "pubKeyCredParams": [{"type": "public-key", "alg": ES256}],
        "timeout": CREATE_TIMEOUT_MS,
        "authenticatorSelection": {
            "authenticatorAttachment": "platform",
            "residentKey": "preferred",
            "userVerification": "preferred",
        },
    }


def assertion_options(descriptor: CredentialDescriptor, rp_id: str, challenge: bytes | None = None) -> dict[str, Any]:
    return {
        "challenge": challenge or generate_challenge(),
        "rpId": rp_id,
        "allowCredentials": [{"id": b64url_decode(descriptor.raw_id), "type": "public-key"}],
        "userVerification": "preferred",
        "timeout": GET_TIMEOUT_MS,
    }
