"""
Cellar Tracker Backend - Upload Endpoint Tests
===============================================

POST /api/upload and GET /uploads/{filename}.
"""

import io

import pytest
from PIL import Image


class TestUpload:

    @pytest.mark.asyncio
    async def test_valid_upload_returns_both_urls(self, test_client, make_image, upload_dir):
        response = await test_client.post(
            "/api/upload",
            files={"image": ("label.jpg", make_image("JPEG", size=(800, 600)), "image/jpeg")},
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert set(body) == {"imageUrl", "thumbnailUrl"}

        thumb = await test_client.get(body["thumbnailUrl"])
        assert thumb.status_code == 200
        with Image.open(io.BytesIO(thumb.content)) as image:
            assert image.size == (200, 200)

    @pytest.mark.asyncio
    async def test_non_image_type_rejected(self, test_client, upload_dir):
        response = await test_client.post(
            "/api/upload",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid file type. Only JPEG, PNG and WebP are allowed."
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected(self, test_client, upload_dir):
        too_big = b"\xff" * (5 * 1024 * 1024 + 1)
        response = await test_client.post(
            "/api/upload",
            files={"image": ("huge.jpg", too_big, "image/jpeg")},
        )

        assert response.status_code == 400
        assert "too large" in response.json()["error"]
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_corrupt_image_rejected(self, test_client, upload_dir):
        response = await test_client.post(
            "/api/upload",
            files={"image": ("broken.png", b"\x89PNG\r\n\x1a\n garbage", "image/png")},
        )

        assert response.status_code == 400
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_file_is_400(self, test_client):
        response = await test_client.post("/api/upload", data={"other": "x"})
        assert response.status_code == 400


class TestServeUpload:

    @pytest.mark.asyncio
    async def test_missing_file_is_404(self, test_client):
        response = await test_client.get("/uploads/does-not-exist.jpg")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    @pytest.mark.asyncio
    async def test_path_traversal_is_400(self, test_client):
        response = await test_client.get("/uploads/..%2F..%2Fetc%2Fpasswd")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_temporary_files_not_served(self, test_client, upload_dir):
        (upload_dir / ".tmp-partial.jpg").write_bytes(b"half written")

        response = await test_client.get("/uploads/.tmp-partial.jpg")
        assert response.status_code == 400
