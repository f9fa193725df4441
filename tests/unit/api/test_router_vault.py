"""Tests for the vault endpoints."""

import pytest
from cryptography.fernet import Fernet
from httpx import AsyncClient

from jwtool.crypto.keys import export_key_to_pem
from jwtool.crypto.signer import sign
from jwtool.crypto.types import AsymmetricKeyPair

SECRET = "vault-secret"


async def _store(
    client: AsyncClient, name: str, claims: dict[str, object], tags: list[str]
) -> dict[str, object]:
    resp = await client.post(
        "/vault/tokens",
        json={"name": name, "token": sign({}, claims, SECRET, "HS256"), "tags": tags},
    )
    assert resp.status_code == 200
    return resp.json()


class TestVaultTokens:
    """Tests for /vault/tokens."""

    async def test_store_and_read(self, client: AsyncClient) -> None:
        stored = await _store(client, "api", {"sub": "u1"}, ["prod"])
        assert stored["algorithm"] == "HS256"
        assert stored["expiresAt"] is None

        resp = await client.get(f"/vault/tokens/{stored['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "api"

    async def test_exp_beyond_datetime_range(self, client: AsyncClient) -> None:
        stored = await _store(client, "far", {"exp": 100_000_000_000_000}, [])
        assert stored["expiresAt"] is None

    async def test_list_by_tag(self, client: AsyncClient) -> None:
        await _store(client, "a", {}, ["prod"])
        await _store(client, "b", {}, ["dev"])
        resp = await client.get("/vault/tokens", params={"tag": "dev"})
        assert [t["name"] for t in resp.json()["tokens"]] == ["b"]

    async def test_expired(self, client: AsyncClient) -> None:
        await _store(client, "old", {"exp": 1}, [])
        await _store(client, "fresh", {"exp": 4_000_000_000}, [])
        resp = await client.get("/vault/tokens/expired")
        assert [t["name"] for t in resp.json()["tokens"]] == ["old"]

    async def test_export_import(self, client: AsyncClient) -> None:
        await _store(client, "a", {"sub": "a"}, ["t"])
        exported = await client.get("/vault/tokens/export")
        assert exported.headers["content-type"] == "application/json"

        await client.delete("/vault/tokens")
        assert (await client.get("/vault/tokens")).json()["tokens"] == []

        resp = await client.post("/vault/tokens/import", json={"data": exported.text})
        assert [t["name"] for t in resp.json()["tokens"]] == ["a"]

    async def test_import_invalid(self, client: AsyncClient) -> None:
        resp = await client.post("/vault/tokens/import", json={"data": "[{}]"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_format"

    async def test_store_malformed(self, client: AsyncClient) -> None:
        resp = await client.post("/vault/tokens", json={"name": "x", "token": "abc"})
        assert resp.status_code == 400

    async def test_delete(self, client: AsyncClient) -> None:
        stored = await _store(client, "gone", {}, [])
        resp = await client.delete(f"/vault/tokens/{stored['id']}")
        assert resp.status_code == 204
        assert (await client.get(f"/vault/tokens/{stored['id']}")).status_code == 404

    async def test_delete_missing(self, client: AsyncClient) -> None:
        resp = await client.delete("/vault/tokens/missing")
        assert resp.status_code == 404


class TestVaultKeys:
    """Tests for /vault/keys."""

    async def test_public_key(
        self, client: AsyncClient, rsa_pair: AsymmetricKeyPair
    ) -> None:
        pem = export_key_to_pem(rsa_pair, "public")
        stored = (
            await client.post(
                "/vault/keys",
                json={"name": "pub", "algorithm": "RS256", "keyData": pem},
            )
        ).json()
        assert stored["keyType"] == "asymmetric"
        assert stored["hasKeyData"] is True
        assert stored["keyData"] is None

        read = (await client.get(f"/vault/keys/{stored['id']}")).json()
        assert read["keyData"] == pem

    async def test_secret_dropped_without_encryption_key(
        self, client: AsyncClient
    ) -> None:
        stored = (
            await client.post(
                "/vault/keys",
                json={"name": "hmac", "algorithm": "HS256", "keyData": "s3cret"},
            )
        ).json()
        assert stored["hasKeyData"] is False

    async def test_secret_encrypted(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("JWTOOL_KEY_ENCRYPTION_KEY", Fernet.generate_key().decode())
        stored = (
            await client.post(
                "/vault/keys",
                json={"name": "hmac", "algorithm": "HS256", "keyData": "s3cret"},
            )
        ).json()
        assert stored["keyType"] == "symmetric"
        assert stored["hasKeyData"] is True

        read = (await client.get(f"/vault/keys/{stored['id']}")).json()
        assert read["keyData"] == "s3cret"

    async def test_filter_by_algorithm(self, client: AsyncClient) -> None:
        await client.post("/vault/keys", json={"name": "a", "algorithm": "ES256"})
        await client.post("/vault/keys", json={"name": "b", "algorithm": "EdDSA"})
        resp = await client.get("/vault/keys", params={"algorithm": "EdDSA"})
        assert [k["name"] for k in resp.json()["keys"]] == ["b"]

    async def test_unknown_algorithm(self, client: AsyncClient) -> None:
        resp = await client.post("/vault/keys", json={"name": "x", "algorithm": "XS1"})
        assert resp.status_code == 400

    async def test_delete_and_clear(self, client: AsyncClient) -> None:
        stored = (
            await client.post("/vault/keys", json={"name": "a", "algorithm": "RS256"})
        ).json()
        assert (await client.delete(f"/vault/keys/{stored['id']}")).status_code == 204
        assert (await client.get(f"/vault/keys/{stored['id']}")).status_code == 404

        await client.post("/vault/keys", json={"name": "b", "algorithm": "RS256"})
        assert (await client.delete("/vault/keys")).status_code == 204
        assert (await client.get("/vault/keys")).json()["keys"] == []


class TestVaultAuth:
    """Tests for the optional vault Bearer token."""

    async def test_open_without_token(self, client: AsyncClient) -> None:
        assert (await client.get("/vault/tokens")).status_code == 200

    async def test_requires_token(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("JWTOOL_API_TOKEN", "t0ken")
        assert (await client.get("/vault/tokens")).status_code == 401

        resp = await client.get(
            "/vault/tokens", headers={"Authorization": "Bearer wrong"}
        )
        assert resp.status_code == 401

        resp = await client.get(
            "/vault/tokens", headers={"Authorization": "Bearer t0ken"}
        )
        assert resp.status_code == 200

    async def test_token_routes_stay_open(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("JWTOOL_API_TOKEN", "t0ken")
        resp = await client.post("/tokens/extract", json={"text": ""})
        assert resp.status_code == 200
