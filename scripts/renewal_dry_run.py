import asyncio
import json
import logging
import os
import sys

import httpx
from dotenv import load_dotenv

repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_root = os.path.join(repo_root, "src")
if src_root not in sys.path:
    sys.path.insert(0, src_root)

try:
    from renewing_client import (
        AuthExhaustedError,
        ClientSettings,
        HistoryNavigator,
        InMemoryCredentialStore,
        RequestDispatcher,
        RouteLocation,
    )
except ModuleNotFoundError as exc:
    print("Missing renewing_client module. Run from repository root with venv active.")
    raise SystemExit(1) from exc


CONCURRENT_REQUESTS = int(os.getenv("DRY_RUN_REQUESTS", "20"))


class DryRunBackend:
    def __init__(self, *, accept_refresh: bool):
        self.accept_refresh = accept_refresh
        self.renewal_calls = 0
        self.valid_token = "dry-run-fresh"

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        if request.url.path.endswith("/auth/refresh"):
            self.renewal_calls += 1
            print(f"Dry run: renewal call #{self.renewal_calls}")
            await asyncio.sleep(0.05)
            if not self.accept_refresh:
                return httpx.Response(401, json={"code": 401, "message": "refresh expired"})
            payload = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "code": 200,
                    "data": {
                        "token": self.valid_token,
                        "refresh_token": payload["refresh_token"] + "-rotated",
                    },
                },
            )
        if request.headers.get("Authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"code": 401, "message": "token expired"})
        return httpx.Response(200, json={"code": 200, "data": {"list": [], "total": 0}})


async def run_scenario(accept_refresh: bool) -> int:
    label = "valid refresh token" if accept_refresh else "revoked refresh token"
    print(f"\nDry run: {CONCURRENT_REQUESTS} concurrent requests, {label}")

    store = InMemoryCredentialStore("dry-run-expired", "dry-run-refresh")
    navigator = HistoryNavigator(RouteLocation("Builds", "/builds?page=3"))
    backend = DryRunBackend(accept_refresh=accept_refresh)
    settings = ClientSettings(base_url="http://dry-run.local/api")

    async with RequestDispatcher(
        store, navigator, settings=settings, transport=httpx.MockTransport(backend)
    ) as client:
        results = await asyncio.gather(
            *(client.get("/builds") for _ in range(CONCURRENT_REQUESTS)),
            return_exceptions=True,
        )

    succeeded = sum(1 for r in results if not isinstance(r, BaseException))
    exhausted = sum(1 for r in results if isinstance(r, AuthExhaustedError))
    print(f"Dry run: renewal calls={backend.renewal_calls}")
    print(f"Dry run: succeeded={succeeded} exhausted={exhausted}")
    print(f"Dry run: navigations={navigator.history}")

    if backend.renewal_calls > 1 or len(navigator.history) > 1:
        print("Dry run: FAILED - coordination invariant violated")
        return 1
    return 0


async def run_demo() -> int:
    logging.basicConfig(level=logging.INFO)
    status = await run_scenario(accept_refresh=True)
    status |= await run_scenario(accept_refresh=False)
    return status


if __name__ == "__main__":
    load_dotenv()
    raise SystemExit(asyncio.run(run_demo()))
