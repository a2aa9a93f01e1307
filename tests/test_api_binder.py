"""Tests for binder shelf and preference endpoints."""

import json

from httpx import AsyncClient

from binderkeep.api.deps import AppServices
from binderkeep.services.catalog_cache import KEY_POCKET_SET_IDS


async def _create(client: AsyncClient, name: str, collection_type: str = "custom", **params) -> dict:
    response = await client.post(
        "/binder/collections", json={"type": collection_type, "name": name}, params=params
    )
    assert response.status_code == 201
    return response.json()


class TestShelf:
    async def test_create_and_list(self, client: AsyncClient) -> None:
        """Created collections appear on the shelf in display order."""
        custom = await _create(client, "Trades")
        dex = await _create(client, "Dex", "master_dex")

        response = await client.get("/binder")

        assert [c["id"] for c in response.json()] == [dex["id"], custom["id"]]

    async def test_create_with_options(self, client: AsyncClient) -> None:
        """Options become collection fields."""
        response = await client.post(
            "/binder/collections",
            json={"type": "by_set", "name": "Base", "options": {"set_id": "base1"}},
        )

        assert response.json()["setId"] == "base1"

    async def test_create_rejects_unknown_option(self, client: AsyncClient) -> None:
        """Unknown options are a client error."""
        response = await client.post(
            "/binder/collections",
            json={"type": "custom", "name": "X", "options": {"colour": "red"}},
        )

        assert response.status_code == 400

    async def test_create_rejects_option_named_like_a_field_it_sets(
        self, client: AsyncClient
    ) -> None:
        """An option that would override the name is a client error."""
        response = await client.post(
            "/binder/collections",
            json={"type": "custom", "name": "A", "options": {"name": "B"}},
        )

        assert response.status_code == 400
        assert (await client.get("/binder")).json() == []

    async def test_pocket_set_binder_left_off_shelf(
        self, client: AsyncClient, services: AppServices
    ) -> None:
        """A by-set binder for a Pocket set is created but not listed."""
        await services.store.set_item(KEY_POCKET_SET_IDS, json.dumps(["A1"]))
        await client.post(
            "/binder/collections",
            json={"type": "by_set", "name": "Genetic Apex", "options": {"set_id": "A1"}},
        )
        base = await client.post(
            "/binder/collections",
            json={"type": "by_set", "name": "Base", "options": {"set_id": "base1"}},
        )

        shelf = (await client.get("/binder")).json()

        assert [c["id"] for c in shelf] == [base.json()["id"]]


    async def test_signed_in_goes_remote(self, client: AsyncClient, services: AppServices) -> None:
        """Passing uid stores collections in the remote document store."""
        created = await _create(client, "Cloud", uid="u1")

        assert services.documents.paths() == [f"users/u1/collections/{created['id']}"]
        shelf = (await client.get("/binder", params={"uid": "u1"})).json()
        assert [c["id"] for c in shelf] == [created["id"]]
        assert (await client.get("/binder")).json() == []

    async def test_save_order(self, client: AsyncClient) -> None:
        """An explicit order controls the shelf."""
        a = await _create(client, "A")
        b = await _create(client, "B")

        response = await client.put("/binder/order", json=[b["id"], a["id"]])

        assert [c["id"] for c in response.json()] == [b["id"], a["id"]]


class TestCollectionEdits:
    async def test_update(self, client: AsyncClient) -> None:
        """Editable fields change."""
        created = await _create(client, "Old")

        response = await client.patch(
            f"/binder/collections/{created['id']}", json={"name": "New", "binder_color": "blue"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "New"
        assert response.json()["binderColor"] == "blue"

    async def test_update_type_rejected(self, client: AsyncClient) -> None:
        """The type cannot change."""
        created = await _create(client, "X")

        response = await client.patch(f"/binder/collections/{created['id']}", json={"type": "by_set"})

        assert response.status_code == 400

    async def test_update_missing(self, client: AsyncClient) -> None:
        response = await client.patch("/binder/collections/missing", json={"name": "X"})

        assert response.status_code == 404

    async def test_update_with_parameter_like_keys(self, client: AsyncClient) -> None:
        """Keys such as collection_id in the body are rejected, not a server error."""
        created = await _create(client, "X")

        response = await client.patch(
            f"/binder/collections/{created['id']}", json={"collection_id": "other"}
        )

        assert response.status_code == 400


    async def test_set_slot_and_delete(self, client: AsyncClient) -> None:
        """Slots are filled, then the collection is deleted."""
        created = await _create(client, "Dex", "master_dex")

        response = await client.put(
            f"/binder/collections/{created['id']}/slots/25",
            json={"card": {"cardId": "base1-58", "variant": "holo"}},
        )
        slots = response.json()["slots"]
        assert [s["key"] for s in slots] == ["25"]
        assert slots[0]["card"]["cardId"] == "base1-58"
        assert slots[0]["card"]["variant"] == "holo"

        assert (await client.delete(f"/binder/collections/{created['id']}")).status_code == 204
        assert (await client.delete(f"/binder/collections/{created['id']}")).status_code == 404


class TestPreferences:
    async def test_view_mode(self, client: AsyncClient) -> None:
        """View modes are saved per context; binders stay grid."""
        await client.put("/preferences/view-mode/search", params={"mode": "list"})
        await client.put("/preferences/view-mode/binder", params={"mode": "list"})

        assert (await client.get("/preferences/view-mode/search")).json() == {"context": "search", "mode": "list"}
        assert (await client.get("/preferences/view-mode/binder")).json()["mode"] == "grid"

    async def test_welcome(self, client: AsyncClient) -> None:
        """Dismissing the welcome screen hides it."""
        assert (await client.get("/preferences/welcome")).json() == {"show": True}

        response = await client.post("/preferences/welcome/dismiss")

        assert response.json() == {"show": False}
