"""End-to-end tests for file upload flow."""

import time
import httpx
import pytest
from httpx import AsyncClient
from jose import jwt
from podcaster.config import settings

USER_ID = "0b6f7c9d-1e2a-4b3c-8d4e-5f6a7b8c9d0e"


def provider_token() -> dict:
    access_token = jwt.encode(
        {
            "sub": USER_ID,
            "email": "host@example.com",
            "aud": settings.jwt_audience,
            "exp": int(time.time()) + 3600,
        },
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return {
        "access_token": access_token,
        "refresh_token": "refresh",
        "expires_in": 3600,
        "user": {"id": USER_ID, "email": "host@example.com"},
    }


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_complete_upload_flow(client: AsyncClient, auth_handler):
    """
    Test complete file upload flow:
    1. Sign in
    2. Upload file
    3. Follow the upload task
    4. List files and get file details
    5. Check storage usage
    6. Sign out
    """
    auth_handler.routes[("POST", "/auth/v1/token")] = httpx.Response(200, json=provider_token())
    auth_handler.routes[("POST", "/auth/v1/logout")] = httpx.Response(204)

    signin = await client.post(
        "/api/auth/signin", json={"email": "host@example.com", "password": "secret"}
    )
    assert signin.status_code == 200
    headers = {"Authorization": f"Bearer {signin.json()['data']['access_token']}"}

    upload = await client.post(
        "/files/upload",
        files={"files": ("episode-01.mp3", b"\x01" * (5 * 1024 * 1024), "audio/mpeg")},
        headers=headers,
    )
    assert upload.status_code == 202
    task_id = upload.json()["tasks"][0]["id"]

    task = (await client.get(f"/uploads/{task_id}", headers=headers)).json()
    assert task["state"] == "completed"
    assert task["storage_url"].endswith("episode-01.mp3")

    files = (await client.get("/files", headers=headers)).json()["files"]
    assert len(files) == 1
    details = (await client.get(f"/files/{files[0]['id']}", headers=headers)).json()
    assert details["id"] == task["record_id"]
    assert details["status"] == "uploaded"
    assert details["file_size"] == 5242880

    usage = (await client.get("/storage/usage", headers=headers)).json()
    assert usage["usage"] == 5242880
    assert usage["percentage"] == 0
    assert usage["remaining"] == 1024 * 1024 * 1024 - 5242880

    signout = await client.post("/api/auth/signout", headers=headers)
    assert signout.status_code == 200
    assert (await client.get("/uploads", headers=headers)).json() == []
