from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from fundtrack.core.errors import CapabilityError

# Android browsers expose the credential API but not a usable platform authenticator.
_NON_BIOMETRIC_UA = re.compile(r"Android", re.IGNORECASE)


class AuthMethod(str, Enum):
    PLATFORM_CREDENTIAL = "platform-credential"
    SOCIAL_IDENTITY = "social-identity"
    MANUAL_ONLY = "manual-only"


@dataclass(frozen=True)
class Device:
    user_agent: str
    hostname: str = "localhost"
    has_platform_credential_api: bool = False
    has_identity_provider: bool = False


def is_non_biometric_mobile(user_agent: str) -> bool:
    return bool(_NON_BIOMETRIC_UA.search(user_agent or ""))


def probe_capability(device: Device) -> AuthMethod:
    if is_non_biometric_mobile(device.user_agent):
        if device.has_identity_provider:
            return AuthMethod.SOCIAL_IDENTITY
        return AuthMethod.MANUAL_ONLY
    if device.has_platform_credential_api:
        return AuthMethod.PLATFORM_CREDENTIAL
    raise CapabilityError("webauthn_unsupported", "Platform credentials are not supported on this browser.")
