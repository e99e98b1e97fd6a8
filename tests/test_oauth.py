import pytest

from helpai.core.config import get_settings
from helpai.core.security import create_oauth_state, verify_oauth_state
from helpai.services import accounts, oauth, store
from helpai.services.oauth import OAuthProfile


async def test_new_provider_user_is_created(db):
    profile = OAuthProfile(provider="google", provider_id="g-1", email="g@x.com", profile_picture="pic")

    user = await accounts.sign_in_with_provider(db, profile)

    assert user.username == "google_g-1"
    assert user.password_hash is None
    assert user.email == "g@x.com"


async def test_existing_email_is_linked(db):
    local = await store.create_user(db, username="dana", password_hash="h", email="dana@x.com")

    user = await accounts.sign_in_with_provider(
        db, OAuthProfile(provider="discord", provider_id="d-9", email="dana@x.com"),
    )

    assert user.id == local.id
    assert user.provider == "discord"
    assert user.provider_id == "d-9"


async def test_returning_user_gets_new_picture(db):
    first = await accounts.sign_in_with_provider(
        db, OAuthProfile(provider="google", provider_id="g-2", profile_picture="old.png"),
    )
    again = await accounts.sign_in_with_provider(
        db, OAuthProfile(provider="google", provider_id="g-2", profile_picture="new.png"),
    )

    assert again.id == first.id
    assert again.profile_picture == "new.png"


def test_discord_profile_avatar_url():
    profile = oauth.parse_profile("discord", {"id": 123, "avatar": "abc", "email": "e@x.com"})
    assert profile.provider_id == "123"
    assert profile.profile_picture == "https://cdn.discordapp.com/avatars/123/abc.png"


def test_oauth_state_is_bound_to_provider(settings):
    state = create_oauth_state("google", settings)
    assert verify_oauth_state(state, "google", settings)
    assert not verify_oauth_state(state, "discord", settings)
    assert not verify_oauth_state("tampered", "google", settings)


async def test_auth_url_and_bad_callback_state(client, monkeypatch):
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "cid")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")
    get_settings.cache_clear()

    resp = await client.get("/api/auth/google", follow_redirects=False)
    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert "client_id=cid" in location

    resp = await client.get(
        "/api/auth/google/callback", params={"code": "c", "state": "forged"}, follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/auth"


async def test_callback_signs_user_in(client, monkeypatch):
    monkeypatch.setenv("DISCORD_CLIENT_ID", "cid")
    monkeypatch.setenv("DISCORD_CLIENT_SECRET", "secret")
    get_settings.cache_clear()

    async def fake_exchange(provider, code, settings):
        assert code == "auth-code"
        return "access"

    async def fake_profile(provider, token):
        return OAuthProfile(provider="discord", provider_id="77", email="eve@x.com")

    monkeypatch.setattr(oauth, "exchange_code", fake_exchange)
    monkeypatch.setattr(oauth, "fetch_profile", fake_profile)

    state = create_oauth_state("discord", get_settings())
    resp = await client.get(
        "/api/auth/discord/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )

    assert resp.status_code == 302
    assert resp.headers["location"] == "/"
    token = resp.cookies.get("helpai_session")
    assert token

    me = await client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["username"] == "discord_77"
