import asyncio
import httpx
import os
import sys

# Configuration
BASE_URL = os.getenv("API_URL", "http://localhost:8000")
EMAIL = os.getenv("PODCASTER_EMAIL", "host@example.com")
PASSWORD = os.getenv("PODCASTER_PASSWORD", "secret123")

MB = 1024 * 1024


async def main():
    async with httpx.AsyncClient(base_url=BASE_URL, timeout=60.0) as client:
        # 1. Sign in
        print("1. Signing in...")
        response = await client.post("/api/auth/signin", json={"email": EMAIL, "password": PASSWORD})
        if response.status_code != 200:
            print(f"Sign in failed: {response.text}")
            sys.exit(1)
        token = response.json()["data"]["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        # 2. Upload files that must be rejected before anything is stored
        print("\n2. Uploading invalid files...")
        cases = [
            ("too_big.wav", b"\x00" * (101 * MB), "audio/wav", "File size must be less than 100 MB"),
            ("slides.pdf", b"%PDF-1.4", "application/pdf", "Please upload an audio file"),
            ("episode.txt", b"\x00" * 1024, "audio/mpeg", "File extension not supported"),
        ]
        failures = 0
        for name, data, content_type, expected in cases:
            resp = await client.post(
                "/files/upload", files={"files": (name, data, content_type)}, headers=headers
            )
            task = resp.json()["tasks"][0]
            if task["state"] == "error" and task["error"].startswith(expected):
                print(f"✓ {name} rejected: {task['error']}")
            else:
                failures += 1
                print(f"✗ {name} not rejected as expected: {task}")

        # 3. Upload a valid file
        print("\n3. Uploading a valid MP3...")
        resp = await client.post(
            "/files/upload",
            files={"files": ("valid.mp3", b"\x01" * (5 * MB), "audio/mpeg")},
            headers=headers,
        )
        task = resp.json()["tasks"][0]
        for _ in range(30):
            task = (await client.get(f"/uploads/{task['id']}", headers=headers)).json()
            if task["state"] in ("completed", "error"):
                break
            await asyncio.sleep(1)

        if task["state"] == "completed":
            print(f"✓ Uploaded to {task['storage_url']}")
            # Clean up
            await client.delete(f"/files/{task['record_id']}", headers=headers)
        else:
            failures += 1
            print(f"✗ Valid upload ended in {task['state']}: {task.get('error')}")

        sys.exit(1 if failures else 0)


if __name__ == "__main__":
    asyncio.run(main())
