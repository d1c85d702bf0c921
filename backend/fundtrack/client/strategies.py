from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from fundtrack.client.capability import AuthMethod, Device
from fundtrack.client.session_store import (
    CREDENTIAL_KEY,
    MANUAL_TOKEN_KEY,
    SOCIAL_TOKEN_KEY,
    SessionStore,
)
from fundtrack.client.webauthn import (
    CredentialDescriptor,
    PlatformAuthenticator,
    assertion_options,
    creation_options,
    rp_id_for,
)
from fundtrack.core.config import ClientSettings
from fundtrack.core.errors import AuthError, CapabilityError, FundTrackError

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
TOKEN_KEYS = (SOCIAL_TOKEN_KEY, MANUAL_TOKEN_KEY)


class AuthOutcome(str, Enum):
    SUCCESS = "success"
    CAPABILITY_ERROR = "capability-error"
    USER_ERROR = "user-error"
    NO_CREDENTIAL = "no-credential"


@dataclass(frozen=True)
class AuthResult:
    outcome: AuthOutcome
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is AuthOutcome.SUCCESS


class AuthStrategy(Protocol):
    method: AuthMethod

    def is_enrolled(self) -> bool:
        ...

    def register(self) -> AuthResult:
        ...

    def unlock(self, username: str | None = None, password: str | None = None) -> AuthResult:
        ...

    def reset(self) -> None:
        ...


class IdentityProvider(Protocol):
    def prompt(self, client_id: str, auto_select: bool = True) -> str | None:
        """Show the one-tap prompt; return the identity token or None."""
        ...


class TokenIssuer(Protocol):
    def login(self, username: str, password: str) -> str:
        ...


def _has_token(store: SessionStore) -> bool:
    return any(store.get(k) for k in TOKEN_KEYS)


class WebCredentialStrategy:
    method = AuthMethod.PLATFORM_CREDENTIAL

    def __init__(self, authenticator: PlatformAuthenticator, store: SessionStore, rp_id: str, cfg: ClientSettings):
        self.authenticator = authenticator
        self.store = store
        self.rp_id = rp_id
        self.cfg = cfg

    def is_enrolled(self) -> bool:
        return self.store.get(CREDENTIAL_KEY) is not None

    def register(self) -> AuthResult:
        try:
            cred = self.authenticator.create(creation_options(self.cfg, self.rp_id))
        except CapabilityError as e:
            return AuthResult(AuthOutcome.CAPABILITY_ERROR, e.message)
        except Exception as e:
            log.exception("passkey registration failed")
            return AuthResult(AuthOutcome.USER_ERROR, f"Failed to register passkey: {e}")

        self.store.set(CREDENTIAL_KEY, CredentialDescriptor.from_credential(cred).to_json())
        log.info("passkey registered rp_id=%s", self.rp_id)
        return AuthResult(AuthOutcome.SUCCESS, "Passkey registered successfully")

    def unlock(self, username: str | None = None, password: str | None = None) -> AuthResult:
        stored = self.store.get(CREDENTIAL_KEY)
        if stored is None:
            return AuthResult(AuthOutcome.NO_CREDENTIAL, "No credential registered.")
        try:
            descriptor = CredentialDescriptor.from_json(stored)
        except (ValueError, KeyError):
            return AuthResult(AuthOutcome.NO_CREDENTIAL, "Stored credential is unreadable, re-register.")

        try:
            assertion = self.authenticator.get(assertion_options(descriptor, self.rp_id))
        except CapabilityError as e:
            return AuthResult(AuthOutcome.CAPABILITY_ERROR, e.message)
        except Exception as e:
            log.exception("passkey unlock failed")
            return AuthResult(AuthOutcome.USER_ERROR, f"Unlock failed: {e}")

        if assertion is None:
            return AuthResult(AuthOutcome.NO_CREDENTIAL, "No credential found, re-register.")
        return AuthResult(AuthOutcome.SUCCESS, "Unlocked successfully")

    def reset(self) -> None:
        self.store.clear(CREDENTIAL_KEY)


class SocialTokenStrategy:
    method = AuthMethod.SOCIAL_IDENTITY

    def __init__(self, provider: IdentityProvider, store: SessionStore, client_id: str | None):
        self.provider = provider
        self.store = store
        self.client_id = client_id

    def is_enrolled(self) -> bool:
        return _has_token(self.store)

    def register(self) -> AuthResult:
        return self.unlock()

    def unlock(self, username: str | None = None, password: str | None = None) -> AuthResult:
        if not self.client_id:
            return AuthResult(AuthOutcome.CAPABILITY_ERROR, "Identity client id is not configured.")
        try:
            token = self.provider.prompt(self.client_id, auto_select=True)
        except CapabilityError as e:
            return AuthResult(AuthOutcome.CAPABILITY_ERROR, e.message)
        if not token:
            return AuthResult(AuthOutcome.USER_ERROR, "No credential returned")
        self.store.set(SOCIAL_TOKEN_KEY, token)
        return AuthResult(AuthOutcome.SUCCESS, "Signed in")

    def reset(self) -> None:
        self.store.clear(SOCIAL_TOKEN_KEY)


class PasswordFormStrategy:
    method = AuthMethod.MANUAL_ONLY

    def __init__(self, issuer: TokenIssuer, store: SessionStore):
        self.issuer = issuer
        self.store = store

    def is_enrolled(self) -> bool:
        return _has_token(self.store)

    def register(self) -> AuthResult:
        return AuthResult(AuthOutcome.USER_ERROR, "Accounts are created by the administrator.")

    def unlock(self, username: str | None = None, password: str | None = None) -> AuthResult:
        if not username or not password:
            return AuthResult(AuthOutcome.USER_ERROR, INVALID_CREDENTIALS)
        try:
            token = self.issuer.login(username, password)
        except AuthError:
            return AuthResult(AuthOutcome.USER_ERROR, INVALID_CREDENTIALS)
        except FundTrackError as e:
            log.warning("manual login failed: %s", e.detail)
            return AuthResult(AuthOutcome.USER_ERROR, INVALID_CREDENTIALS)
        self.store.set(MANUAL_TOKEN_KEY, token)
        return AuthResult(AuthOutcome.SUCCESS, "Signed in")

    def reset(self) -> None:
        self.store.clear(MANUAL_TOKEN_KEY)


def build_strategy(
    method: AuthMethod,
    *,
    device: Device,
    store: SessionStore,
    cfg: ClientSettings,
    authenticator: PlatformAuthenticator | None = None,
    provider: IdentityProvider | None = None,
    issuer: TokenIssuer | None = None,
) -> AuthStrategy:
    if method is AuthMethod.PLATFORM_CREDENTIAL:
        if authenticator is None:
            raise CapabilityError("webauthn_unsupported", "No platform authenticator available.")
        return WebCredentialStrategy(authenticator, store, rp_id_for(device.hostname, cfg.rp_host), cfg)
    if method is AuthMethod.SOCIAL_IDENTITY:
        if provider is None:
            raise CapabilityError("identity_unavailable", "Identity provider is not loaded.")
        return SocialTokenStrategy(provider, store, cfg.google_client_id)
    if issuer is None:
        raise CapabilityError("login_unavailable", "Manual login is not configured.")
    return PasswordFormStrategy(issuer, store)
