"""
Visitor Simulation Script

Drives the storefront API with many concurrent visitors, each walking the
full flow: open storefront, sign in, browse, fill the basket, check out,
track an order, sign out. Every step checks the page the router settled on.

Run the API first (ENV_MODE=development uses the mock backend):
    uvicorn storefront.main:app --port 8001

Usage:
    python scripts/simulate.py
    python scripts/simulate.py --visitors 100
    python scripts/simulate.py --skip-checks

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# =============================================================================
# CONFIGURATION
# =============================================================================

API_BASE_URL = "http://localhost:8001"
TOTAL_VISITORS = 25

DEMO_EMAIL = "demo@iligan.food"
DEMO_PASSWORD = "password123"

MENU = [
    {"product_ref": "prod_inasal", "name": "Chicken Inasal", "unit_price": 149.0, "restaurant_id": "rest_1"},
    {"product_ref": "prod_halo", "name": "Halo-halo", "unit_price": 85.5, "restaurant_id": "rest_1"},
    {"product_ref": "prod_lechon", "name": "Lechon Kawali", "unit_price": 199.0, "restaurant_id": "rest_2"},
    {"product_ref": "prod_pancit", "name": "Pancit Canton", "unit_price": 120.0, "restaurant_id": "rest_2"},
    {"product_ref": "prod_lumpia", "name": "Lumpiang Shanghai", "unit_price": 95.0, "restaurant_id": "rest_3"},
]


class FlowError(Exception):
    """A step landed somewhere other than expected."""


def generate_random_cart() -> list[dict[str, Any]]:
    """Pick 1-3 menu items with random quantities."""
    picks = random.sample(MENU, k=random.randint(1, 3))
    return [{**item, "quantity": random.randint(1, 4)} for item in picks]


def expect(view: dict[str, Any], page: str, step: str) -> dict[str, Any]:
    if view.get("page") != page:
        raise FlowError(f"{step}: expected page {page}, got {view.get('page')}")
    return view


async def call(client: httpx.AsyncClient, method: str, path: str, **kwargs) -> dict[str, Any]:
    response = await client.request(method, f"{API_BASE_URL}{path}", timeout=30.0, **kwargs)
    if response.status_code != 200:
        raise FlowError(f"{method} {path}: HTTP {response.status_code} {response.text[:100]}")
    return response.json()


# =============================================================================
# VISITOR FLOW
# =============================================================================

async def run_visitor(visitor_num: int) -> dict[str, Any]:
    """Walk one visitor through the whole storefront."""
    start_time = time.time()
    step = "open"

    # One client per visitor, so each keeps its own visitor cookie
    async with httpx.AsyncClient() as client:
        try:
            expect(await call(client, "GET", "/api/view"), "auth", step)

            step = "sign-in"
            view = await call(
                client, "POST", "/api/auth/sign-in",
                json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD},
            )
            expect(view, "products", step)

            step = "empty checkout"
            view = await call(client, "POST", "/api/navigate", json={"page": "checkout"})
            expect(view, "products", step)

            step = "basket"
            cart = generate_random_cart()
            view = await call(client, "PUT", "/api/cart", json={"items": cart})
            expected_count = sum(item["quantity"] for item in cart)
            if view["cart_item_count"] != expected_count:
                raise FlowError(f"{step}: count {view['cart_item_count']} != {expected_count}")

            step = "checkout"
            view = await call(client, "POST", "/api/navigate", json={"page": "checkout"})
            expect(view, "checkout", step)
            total = view["props"]["cart_total"]

            step = "track"
            await call(client, "POST", "/api/navigate", json={"page": "history"})
            view = await call(
                client, "POST", "/api/orders/select",
                json={"id": f"order_{visitor_num}", "status": "Preparing", "total_amount": total},
            )
            expect(view, "details", step)

            step = "back to shops"
            expect(await call(client, "POST", "/api/navigate", json={"page": "products"}), "products", step)

            step = "sign-out"
            view = await call(client, "POST", "/api/auth/sign-out")
            # A rejected sign-out leaves the visitor where they were
            signed_out = view["page"] == "auth"

            await call(client, "DELETE", "/api/session")

            return {
                "visitor_num": visitor_num,
                "success": True,
                "signed_out": signed_out,
                "total": total,
                "time": round(time.time() - start_time, 3),
            }
        except (FlowError, httpx.HTTPError) as e:
            return {
                "visitor_num": visitor_num,
                "success": False,
                "error": f"[{step}] {str(e)[:100]}",
                "time": round(time.time() - start_time, 3),
            }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_visitors: int = TOTAL_VISITORS) -> dict[str, Any]:
    """
    Run every visitor concurrently and print a summary.

    Args:
        num_visitors: Number of concurrent visitors
    """
    print("=" * 70)
    print("🛵 STOREFRONT SIMULATION - CONCURRENT VISITORS")
    print("=" * 70)
    print(f"👥 Visitors: {num_visitors}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    results = await asyncio.gather(*(run_visitor(i + 1) for i in range(num_visitors)))
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    stuck = [r for r in successful if not r["signed_out"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Completed Flows: {len(successful)}/{num_visitors}")
    print(f"❌ Failed Flows: {len(failed)}/{num_visitors}")
    print(f"🔒 Rejected Sign-outs: {len(stuck)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Flow: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")
        print(f"   💰 Checked-out Value: ₱{sum(r['total'] for r in successful):.2f}")

    if failed:
        print(f"\n⚠️  Failed Flow Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Visitor #{f['visitor_num']}: {f['error']}")

    print("=" * 70)

    return {
        "total": num_visitors,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight_checks() -> bool:
    """Check health and the signed-out entry point before the main run."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Backend: {data.get('backend_provider')} ({data.get('backend')})")

        print("\n2️⃣ Signed-out View...")
        response = await client.get(f"{API_BASE_URL}/api/view")
        data = response.json()
        if data.get("page") != "auth":
            print(f"   ❌ Expected auth page, got {data.get('page')}")
            return False
        print(f"   ✅ Screen: {data.get('screen')}")

        print("\n3️⃣ Rejected Credentials...")
        response = await client.post(
            f"{API_BASE_URL}/api/auth/sign-in",
            json={"email": DEMO_EMAIL, "password": "definitely-wrong"},
        )
        if response.status_code != 401:
            print(f"   ❌ Expected 401, got {response.status_code}")
            return False
        print(f"   ✅ {response.json().get('detail')}")

        await client.delete(f"{API_BASE_URL}/api/session")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Storefront visitor simulation")
    parser.add_argument("--visitors", type=int, default=TOTAL_VISITORS, help="Number of visitors")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    if not args.skip_checks:
        if not asyncio.run(preflight_checks()):
            print("\n❌ Pre-flight checks failed. Is the API running?")
            sys.exit(1)
        print("\n✅ Pre-flight checks passed!")

    summary = asyncio.run(run_simulation(args.visitors))
    sys.exit(0 if summary["failed"] == 0 else 1)
