import json

import pytest

from fundtrack.client.capability import AuthMethod, Device, probe_capability
from fundtrack.client.gate import AccessGate, GateState, InvalidTransition
from fundtrack.client.session_store import (
    CREDENTIAL_KEY,
    MANUAL_TOKEN_KEY,
    SOCIAL_TOKEN_KEY,
    MemorySessionStore,
)
from fundtrack.client.strategies import AuthOutcome, build_strategy
from fundtrack.client.webauthn import ES256, PublicKeyCredential, b64url_decode
from fundtrack.core.config import ClientSettings
from fundtrack.core.errors import AuthError, CapabilityError

DESKTOP_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15 Safari/605.1.15"
ANDROID_UA = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/126.0 Mobile Safari/537.36"

CFG = ClientSettings(rp_host="funds.example.com", google_client_id="client-123")


class FakeAuthenticator:
    def __init__(self, create_error=None, get_error=None, assertion=True):
        self.create_error = create_error
        self.get_error = get_error
        self.assertion = assertion
        self.created_with = None
        self.asserted_with = None

    def create(self, public_key):
        self.created_with = public_key
        if self.create_error:
            raise self.create_error
        return PublicKeyCredential(id="cred-1", raw_id=b"\x01\x02\x03\xff")

    def get(self, public_key):
        self.asserted_with = public_key
        if self.get_error:
            raise self.get_error
        return PublicKeyCredential(id="cred-1", raw_id=b"\x01\x02\x03\xff") if self.assertion else None


class FakeIdentityProvider:
    def __init__(self, token="id-token"):
        self.token = token
        self.prompted_with = None

    def prompt(self, client_id, auto_select=True):
        self.prompted_with = client_id
        return self.token


class FakeIssuer:
    def login(self, username, password):
        if (username, password) != ("owner", "s3cret!"):
            raise AuthError()
        return "bearer-token"


def _gate(store, device, authenticator=None, provider=None, issuer=None):
    gate = AccessGate(
        lambda method: build_strategy(
            method,
            device=device,
            store=store,
            cfg=CFG,
            authenticator=authenticator,
            provider=provider,
            issuer=issuer,
        )
    )
    gate.start(device)
    return gate


def _desktop(hostname="funds.example.com"):
    return Device(user_agent=DESKTOP_UA, hostname=hostname, has_platform_credential_api=True)


def test_probe_variants():
    assert probe_capability(_desktop()) is AuthMethod.PLATFORM_CREDENTIAL
    assert probe_capability(Device(ANDROID_UA, has_platform_credential_api=True, has_identity_provider=True)) is AuthMethod.SOCIAL_IDENTITY
    assert probe_capability(Device(ANDROID_UA, has_platform_credential_api=True)) is AuthMethod.MANUAL_ONLY
    with pytest.raises(CapabilityError):
        probe_capability(Device(DESKTOP_UA))


def test_no_marker_with_platform_api_is_not_registered():
    gate = _gate(MemorySessionStore(), _desktop(), authenticator=FakeAuthenticator())
    assert gate.state is GateState.NOT_REGISTERED


def test_stored_marker_with_platform_api_is_locked():
    store = MemorySessionStore({CREDENTIAL_KEY: json.dumps({"id": "cred-1", "rawId": "AQID_w", "type": "public-key"})})
    gate = _gate(store, _desktop(), authenticator=FakeAuthenticator())
    assert gate.state is GateState.LOCKED


def test_unsupported_device_opens_with_notice():
    gate = _gate(MemorySessionStore(), Device(DESKTOP_UA))
    assert gate.state is GateState.UNLOCKED
    assert gate.notices and gate.notices[0].level == "warning"


def test_register_stores_descriptor_and_unlocks():
    store = MemorySessionStore()
    auth = FakeAuthenticator()
    gate = _gate(store, _desktop(), authenticator=auth)

    result = gate.register()

    assert result.ok
    assert gate.state is GateState.UNLOCKED
    saved = json.loads(store.get(CREDENTIAL_KEY))
    assert saved == {"id": "cred-1", "rawId": "AQID_w", "type": "public-key"}

    opts = auth.created_with
    assert opts["rp"] == {"name": "Fund Tracker", "id": "funds.example.com"}
    assert opts["pubKeyCredParams"] == [{"type": "public-key", "alg": ES256}]
    assert opts["authenticatorSelection"]["authenticatorAttachment"] == "platform"
    assert opts["user"]["id"] == CFG.user_handle.encode("utf-8")


def test_localhost_uses_localhost_rp_id():
    auth = FakeAuthenticator()
    gate = _gate(MemorySessionStore(), _desktop(hostname="localhost"), authenticator=auth)
    gate.register()
    assert auth.created_with["rp"]["id"] == "localhost"


def test_register_failure_stays_not_registered():
    store = MemorySessionStore()
    gate = _gate(store, _desktop(), authenticator=FakeAuthenticator(create_error=CapabilityError("cancelled", "User cancelled")))

    result = gate.register()

    assert result.outcome is AuthOutcome.CAPABILITY_ERROR
    assert gate.state is GateState.NOT_REGISTERED
    assert store.get(CREDENTIAL_KEY) is None
    assert gate.notices[-1].level == "error"


def test_unlock_success_scopes_assertion_to_stored_credential():
    store = MemorySessionStore()
    auth = FakeAuthenticator()
    gate = _gate(store, _desktop(), authenticator=auth)
    gate.register()

    relaunched = _gate(store, _desktop(), authenticator=auth)
    assert relaunched.state is GateState.LOCKED
    assert relaunched.unlock().ok
    assert relaunched.state is GateState.UNLOCKED

    allowed = auth.asserted_with["allowCredentials"]
    assert b64url_decode("AQID_w") == allowed[0]["id"] == b"\x01\x02\x03\xff"
    assert auth.asserted_with["rpId"] == "funds.example.com"


def test_failed_unlock_stays_locked_without_new_marker():
    store = MemorySessionStore()
    gate = _gate(store, _desktop(), authenticator=FakeAuthenticator(get_error=RuntimeError("NotAllowedError")))
    assert gate.state is GateState.NOT_REGISTERED
    gate.register()

    locked = _gate(store, _desktop(), authenticator=FakeAuthenticator(get_error=RuntimeError("NotAllowedError")))
    before = store.get(CREDENTIAL_KEY)

    result = locked.unlock()

    assert result.outcome is AuthOutcome.USER_ERROR
    assert locked.state is GateState.LOCKED
    assert store.get(CREDENTIAL_KEY) == before
    assert store.get(MANUAL_TOKEN_KEY) is None and store.get(SOCIAL_TOKEN_KEY) is None


def test_unlock_without_matching_credential_goes_back_to_register():
    store = MemorySessionStore()
    _gate(store, _desktop(), authenticator=FakeAuthenticator()).register()

    gate = _gate(store, _desktop(), authenticator=FakeAuthenticator(assertion=False))
    result = gate.unlock()

    assert result.outcome is AuthOutcome.NO_CREDENTIAL
    assert gate.state is GateState.NOT_REGISTERED


def test_reset_clears_marker():
    store = MemorySessionStore()
    _gate(store, _desktop(), authenticator=FakeAuthenticator()).register()

    gate = _gate(store, _desktop(), authenticator=FakeAuthenticator())
    gate.reset()

    assert gate.state is GateState.NOT_REGISTERED
    assert store.get(CREDENTIAL_KEY) is None


def test_actions_outside_their_state_are_rejected():
    gate = _gate(MemorySessionStore(), _desktop(), authenticator=FakeAuthenticator())
    with pytest.raises(InvalidTransition):
        gate.unlock()
    with pytest.raises(InvalidTransition):
        gate.login("owner", "s3cret!")


def test_manual_login_flow():
    store = MemorySessionStore()
    android = Device(ANDROID_UA, has_platform_credential_api=True)
    gate = _gate(store, android, issuer=FakeIssuer())
    assert gate.state is GateState.MANUAL_LOGIN
    assert gate.method is AuthMethod.MANUAL_ONLY

    bad = gate.login("owner", "wrong")
    assert bad.message == "Invalid credentials"
    assert gate.state is GateState.MANUAL_LOGIN

    ghost = gate.login("ghost", "s3cret!")
    assert ghost.message == bad.message

    assert gate.login("owner", "s3cret!").ok
    assert gate.state is GateState.UNLOCKED
    assert store.get(MANUAL_TOKEN_KEY) == "bearer-token"

    assert _gate(store, android, issuer=FakeIssuer()).state is GateState.UNLOCKED


def test_social_sign_in_flow():
    store = MemorySessionStore()
    android = Device(ANDROID_UA, has_identity_provider=True)
    provider = FakeIdentityProvider()
    gate = _gate(store, android, provider=provider)
    assert gate.state is GateState.MANUAL_LOGIN
    assert gate.method is AuthMethod.SOCIAL_IDENTITY

    assert gate.login().ok
    assert provider.prompted_with == "client-123"
    assert store.get(SOCIAL_TOKEN_KEY) == "id-token"
    assert gate.state is GateState.UNLOCKED


def test_social_prompt_without_token_keeps_gate_closed():
    store = MemorySessionStore()
    gate = _gate(store, Device(ANDROID_UA, has_identity_provider=True), provider=FakeIdentityProvider(token=None))

    result = gate.login()

    assert result.outcome is AuthOutcome.USER_ERROR
    assert gate.state is GateState.MANUAL_LOGIN
    gate.dismiss()
    assert gate.notices == []
