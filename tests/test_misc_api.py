import re

from conftest import count_rows

from helpai.models.conversation import Message
from helpai.services import images, search
from helpai.services.images import GeneratedImage
from helpai.services.search import SearchResults


async def test_health(client):
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"


# ── API keys ─────────────────────────────────────────────────────────

async def test_api_keys_status_never_returns_keys(client, alice):
    resp = await client.get("/api/api-keys", headers=alice)
    assert resp.json() == {
        "hasTogetherApiKey": False,
        "hasStabilityApiKey": False,
        "hasSerperApiKey": False,
    }

    resp = await client.post(
        "/api/api-keys", json={"togetherApiKey": "t-1", "serperApiKey": "s-1"}, headers=alice,
    )
    assert resp.status_code == 200
    assert "t-1" not in resp.text

    # Omitted fields are untouched, "" clears
    await client.post("/api/api-keys", json={"serperApiKey": ""}, headers=alice)
    resp = await client.get("/api/api-keys", headers=alice)
    assert resp.json() == {
        "hasTogetherApiKey": True,
        "hasStabilityApiKey": False,
        "hasSerperApiKey": False,
    }


async def test_api_keys_are_per_user(client, alice, bob):
    await client.post("/api/api-keys", json={"stabilityApiKey": "st-1"}, headers=alice)

    resp = await client.get("/api/api-keys", headers=bob)
    assert resp.json()["hasStabilityApiKey"] is False


async def test_api_keys_need_an_account(client):
    assert (await client.get("/api/api-keys", headers={"x-guest-mode": "true"})).status_code == 401


# ── Search ───────────────────────────────────────────────────────────

async def test_search_without_key_reports_missing_key(client, alice):
    resp = await client.post("/api/search", json={"query": "python"}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["missingApiKey"] is True


async def test_search_uses_stored_key(client, alice, monkeypatch):
    async def fake_search(query, *, api_key, settings):
        assert api_key == "s-1"
        return SearchResults(query=query, abstract="A language", abstract_url="https://python.org")

    monkeypatch.setattr(search, "search", fake_search)
    await client.post("/api/api-keys", json={"serperApiKey": "s-1"}, headers=alice)

    resp = await client.post("/api/search", json={"query": "python"}, headers=alice)

    assert resp.status_code == 200
    body = resp.json()
    assert body["query"] == "python"
    assert body["abstract"] == "A language"
    assert body["abstractURL"] == "https://python.org"
    assert body["results"] == []


# ── Code downloads ───────────────────────────────────────────────────

async def test_code_download_is_written_and_served(client, settings):
    resp = await client.post(
        "/api/code/download",
        json={"code": "print('hi')\n", "language": "Python", "filename": "my script"},
        headers={"x-guest-mode": "true"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert re.fullmatch(r"my_script_[0-9a-f]{10}\.py", body["filename"])
    assert body["downloadUrl"] == f"/downloads/{body['filename']}"

    resp = await client.get(body["downloadUrl"])
    assert resp.status_code == 200
    assert resp.text == "print('hi')\n"


async def test_code_download_unknown_language_is_txt(client, alice):
    resp = await client.post(
        "/api/code/download", json={"code": "x", "language": "brainfuck"}, headers=alice,
    )
    assert resp.json()["filename"].endswith(".txt")
    assert resp.json()["filename"].startswith("code_")


# ── Images ───────────────────────────────────────────────────────────

def fake_generate(calls):
    async def generate(prompt, *, api_key, settings, **options):
        calls.append({"prompt": prompt, "api_key": api_key, **options})
        return [
            GeneratedImage(image_url="data:image/png;base64,AAAA", seed=42, finish_reason="SUCCESS")
            for _ in range(options.get("samples", 1))
        ]
    return generate


async def test_generate_image_for_guest(client, monkeypatch):
    calls = []
    monkeypatch.setattr(images, "generate", fake_generate(calls))

    resp = await client.post(
        "/api/image/generate",
        json={"prompt": "a red fox", "samples": 2, "stylePreset": "anime"},
        headers={"x-guest-mode": "true"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["images"]) == 2
    assert body["images"][0]["imageUrl"].startswith("data:image/png;base64,")
    assert body["stylePreset"] == "anime"
    assert calls[0]["api_key"] == "env-stability-key"
    assert await count_rows(Message) == 0


async def test_generate_image_saves_to_conversation(client, alice, monkeypatch):
    monkeypatch.setattr(images, "generate", fake_generate([]))
    convo = (await client.post("/api/conversations", json={"title": "Art"}, headers=alice)).json()

    resp = await client.post(
        "/api/image/generate",
        json={"prompt": "a red fox", "conversationId": convo["id"]},
        headers=alice,
    )
    assert resp.status_code == 200

    messages = (await client.get(f"/api/conversations/{convo['id']}", headers=alice)).json()["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[0]["content"] == 'Generated image with prompt: "a red fox"'
    assert "![Image 1](data:image/png;base64,AAAA)" in messages[1]["content"]
    assert messages[1]["metadata"]["imageGeneration"]["images"] == [{"seed": 42, "finishReason": "SUCCESS"}]


async def test_generate_image_rejects_bad_size(client, alice):
    resp = await client.post(
        "/api/image/generate", json={"prompt": "fox", "width": 256}, headers=alice,
    )
    assert resp.status_code == 400
