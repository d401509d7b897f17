"""
Cellar Tracker Backend - Wine Endpoint Tests
=============================================

What:  /api/wines end to end, including the multipart `wine` + `image`
       submission and cleanup of replaced label images.
"""

import json

import pytest


async def create_bin(client, name="Cellar A"):
    response = await client.post(
        "/api/bins", json={"name": name, "location": "Basement", "capacity": 10}
    )
    assert response.status_code == 201
    return response.json()["id"]


async def create_wine(client, payload, image=None):
    files = {"image": image} if image else None
    return await client.post("/api/wines", data={"wine": json.dumps(payload)}, files=files)


class TestCreateWine:

    @pytest.mark.asyncio
    async def test_create_without_image(self, test_client, wine_payload):
        bin_id = await create_bin(test_client)

        response = await create_wine(test_client, wine_payload(bin_id))

        assert response.status_code == 201, response.text
        wine = response.json()
        assert wine["binId"] == bin_id
        assert wine["vintage"] == 2015
        assert wine["drinkFrom"] == 2025
        assert wine["imageUrl"] is None
        assert wine["reviews"] == []
        assert wine["averageRating"] is None
        assert wine["reviewCount"] == 0

    @pytest.mark.asyncio
    async def test_create_with_image(self, test_client, wine_payload, make_image, upload_dir):
        bin_id = await create_bin(test_client)

        response = await create_wine(
            test_client,
            wine_payload(bin_id),
            image=("label.png", make_image("PNG"), "image/png"),
        )

        assert response.status_code == 201, response.text
        wine = response.json()
        assert wine["imageUrl"].startswith("/uploads/")
        assert wine["thumbnailUrl"].startswith("/uploads/thumb_")
        assert sorted(p.name for p in upload_dir.iterdir()) == sorted(
            [wine["imageUrl"].rsplit("/", 1)[1], wine["thumbnailUrl"].rsplit("/", 1)[1]]
        )

        served = await test_client.get(wine["thumbnailUrl"])
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"

    @pytest.mark.asyncio
    async def test_unknown_bin_is_404_and_stores_nothing(
        self, test_client, wine_payload, make_image, upload_dir
    ):
        response = await create_wine(
            test_client,
            wine_payload(4242),
            image=("label.jpg", make_image("JPEG"), "image/jpeg"),
        )

        assert response.status_code == 404
        assert list(upload_dir.iterdir()) == []
        assert (await test_client.get("/api/wines")).json() == []

    @pytest.mark.asyncio
    async def test_invalid_image_is_400(self, test_client, wine_payload, upload_dir):
        bin_id = await create_bin(test_client)

        response = await create_wine(
            test_client,
            wine_payload(bin_id),
            image=("label.gif", b"GIF89a...", "image/gif"),
        )

        assert response.status_code == 400
        assert "Invalid file type" in response.json()["error"]
        assert (await test_client.get("/api/wines")).json() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": ""},
            {"vintage": "old"},
            {"drinkFrom": 2040, "drinkTo": 2030},
        ],
    )
    async def test_invalid_wine_json_is_400(self, test_client, wine_payload, overrides):
        bin_id = await create_bin(test_client)

        response = await create_wine(test_client, wine_payload(bin_id, **overrides))

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, test_client):
        response = await test_client.post("/api/wines", data={"wine": "{not json"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_wine_field_is_400(self, test_client):
        response = await test_client.post("/api/wines", data={})
        assert response.status_code == 400


class TestReadUpdateDelete:

    @pytest.mark.asyncio
    async def test_list_is_newest_first_with_reviews(self, test_client, wine_payload):
        bin_id = await create_bin(test_client)
        older = (await create_wine(test_client, wine_payload(bin_id, name="Older"))).json()
        newer = (await create_wine(test_client, wine_payload(bin_id, name="Newer"))).json()
        await test_client.post("/api/reviews", json={"wineId": older["id"], "rating": 90})
        await test_client.post("/api/reviews", json={"wineId": older["id"], "rating": 95})

        wines = (await test_client.get("/api/wines")).json()

        assert [w["id"] for w in wines] == [newer["id"], older["id"]]
        assert wines[1]["reviewCount"] == 2
        assert wines[1]["averageRating"] == 92.5
        assert [r["rating"] for r in wines[1]["reviews"]] == [90.0, 95.0]

    @pytest.mark.asyncio
    async def test_get_unknown_is_404(self, test_client):
        response = await test_client.get("/api/wines/31337")
        assert response.status_code == 404
        assert response.json()["error"] == "Wine with ID '31337' was not found"

    @pytest.mark.asyncio
    async def test_partial_update(self, test_client, wine_payload):
        bin_id = await create_bin(test_client)
        other_bin = await create_bin(test_client, name="Cellar B")
        wine = (await create_wine(test_client, wine_payload(bin_id))).json()

        response = await test_client.put(
            f"/api/wines/{wine['id']}",
            data={"wine": json.dumps({"binId": other_bin, "drinkTo": None})},
        )

        assert response.status_code == 200, response.text
        updated = response.json()
        assert updated["binId"] == other_bin
        assert updated["drinkTo"] is None
        assert updated["name"] == wine["name"]

    @pytest.mark.asyncio
    async def test_update_to_unknown_bin_is_404(self, test_client, wine_payload):
        bin_id = await create_bin(test_client)
        wine = (await create_wine(test_client, wine_payload(bin_id))).json()

        response = await test_client.put(
            f"/api/wines/{wine['id']}", data={"wine": json.dumps({"binId": 999})}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_cannot_invert_drinking_window(self, test_client, wine_payload):
        bin_id = await create_bin(test_client)
        wine = (await create_wine(test_client, wine_payload(bin_id))).json()

        # Stored drinkTo is 2050; moving drinkFrom past it is rejected
        response = await test_client.put(
            f"/api/wines/{wine['id']}", data={"wine": json.dumps({"drinkFrom": 2060})}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_replacing_image_removes_old_files(
        self, test_client, wine_payload, make_image, upload_dir
    ):
        bin_id = await create_bin(test_client)
        wine = (
            await create_wine(
                test_client,
                wine_payload(bin_id),
                image=("a.jpg", make_image("JPEG"), "image/jpeg"),
            )
        ).json()

        response = await test_client.put(
            f"/api/wines/{wine['id']}",
            data={"wine": json.dumps({})},
            files={"image": ("b.webp", make_image("WEBP"), "image/webp")},
        )

        assert response.status_code == 200, response.text
        updated = response.json()
        assert updated["imageUrl"].endswith(".webp")
        names = {p.name for p in upload_dir.iterdir()}
        assert wine["imageUrl"].rsplit("/", 1)[1] not in names
        assert updated["imageUrl"].rsplit("/", 1)[1] in names

    @pytest.mark.asyncio
    async def test_delete_cascades_reviews_and_images(
        self, test_client, wine_payload, make_image, upload_dir
    ):
        bin_id = await create_bin(test_client)
        wine = (
            await create_wine(
                test_client,
                wine_payload(bin_id),
                image=("a.jpg", make_image("JPEG"), "image/jpeg"),
            )
        ).json()
        await test_client.post("/api/reviews", json={"wineId": wine["id"], "rating": 88})

        response = await test_client.delete(f"/api/wines/{wine['id']}")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert (await test_client.get("/api/wines")).json() == []
        assert list(upload_dir.iterdir()) == []
        # The bin is empty again and can go
        assert (await test_client.delete(f"/api/bins/{bin_id}")).status_code == 200

    @pytest.mark.asyncio
    async def test_deleting_wine_keeps_images_shared_with_another(
        self, test_client, wine_payload, make_image, upload_dir
    ):
        bin_id = await create_bin(test_client)
        original = (
            await create_wine(
                test_client,
                wine_payload(bin_id),
                image=("a.jpg", make_image("JPEG"), "image/jpeg"),
            )
        ).json()
        copy = (
            await create_wine(
                test_client,
                wine_payload(
                    bin_id,
                    name="Second bottle",
                    imageUrl=original["imageUrl"],
                    thumbnailUrl=original["thumbnailUrl"],
                ),
            )
        ).json()

        assert (await test_client.delete(f"/api/wines/{copy['id']}")).status_code == 200

        assert (await test_client.get(original["imageUrl"])).status_code == 200
        assert (await test_client.get(original["thumbnailUrl"])).status_code == 200
        assert len(list(upload_dir.iterdir())) == 2

    @pytest.mark.asyncio
    async def test_clearing_shared_image_keeps_files(
        self, test_client, wine_payload, make_image, upload_dir
    ):
        bin_id = await create_bin(test_client)
        original = (
            await create_wine(
                test_client,
                wine_payload(bin_id),
                image=("a.jpg", make_image("JPEG"), "image/jpeg"),
            )
        ).json()
        copy = (
            await create_wine(
                test_client,
                wine_payload(
                    bin_id,
                    imageUrl=original["imageUrl"],
                    thumbnailUrl=original["thumbnailUrl"],
                ),
            )
        ).json()

        response = await test_client.put(
            f"/api/wines/{copy['id']}",
            data={"wine": json.dumps({"imageUrl": None, "thumbnailUrl": None})},
        )

        assert response.status_code == 200, response.text
        assert response.json()["imageUrl"] is None
        assert (await test_client.get(original["imageUrl"])).status_code == 200
        assert (await test_client.get(original["thumbnailUrl"])).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_unknown_is_404(self, test_client):
        assert (await test_client.delete("/api/wines/5")).status_code == 404
