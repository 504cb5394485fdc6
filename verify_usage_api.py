import asyncio
import httpx
import json
import os
import sys

BASE_URL = os.getenv("API_URL", "http://localhost:8000")
EMAIL = os.getenv("PODCASTER_EMAIL", "host@example.com")
PASSWORD = os.getenv("PODCASTER_PASSWORD", "secret123")


async def verify_usage():
    async with httpx.AsyncClient(timeout=30.0) as client:
        # 1. Sign in
        print("Signing in...")
        try:
            resp = await client.post(f"{BASE_URL}/api/auth/signin", json={
                "email": EMAIL,
                "password": PASSWORD
            })
            if resp.status_code != 200:
                print(f"Sign in failed: {resp.status_code} {resp.text}")
                return

            token = resp.json()["data"]["access_token"]
            headers = {"Authorization": f"Bearer {token}"}
            print("Sign in successful.")

            # 2. Call Usage API
            print("Calling GET /storage/usage...")
            resp = await client.get(f"{BASE_URL}/storage/usage", headers=headers)
            if resp.status_code != 200:
                print(f"Error calling API: {resp.status_code} {resp.text}")
                return

            usage = resp.json()
            print("Usage API Response:")
            print(json.dumps(usage, indent=2))

            # 3. Cross-check against the file list
            files = (await client.get(f"{BASE_URL}/files", headers=headers)).json()["files"]
            total = sum(f["file_size"] for f in files)
            if total == usage["usage"]:
                print(f"SUCCESS: usage matches {len(files)} files ({total} bytes).")
            else:
                print(f"FAILURE: files add up to {total} bytes, usage reports {usage['usage']}.")
                sys.exit(1)

            if usage["remaining"] != max(0, usage["max_user_storage"] - usage["usage"]):
                print("FAILURE: remaining bytes do not match the quota.")
                sys.exit(1)

        except httpx.HTTPError as e:
            print(f"Exception: {e}")
            sys.exit(1)


if __name__ == "__main__":
    asyncio.run(verify_usage())
