"""
Chaos Simulation Script

Fires concurrent orders and status updates at a running server, then checks
that nothing was lost: every tracking ID is distinct, every order is in
GET /api/orders, and every status update stuck.

Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
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

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:5200"
TOTAL_ORDERS = 50

# Sample data for random orders
FIRST_NAMES = ["Asha", "Ravi", "Lakshmi", "Kiran", "Divya", "Arjun", "Meena", "Suresh", "Priya", "Venkat"]
LAST_NAMES = ["Reddy", "Rao", "Naidu", "Sharma", "Kumar", "Iyer", "Varma", "Goud", "Patel", "Shetty"]
STREETS = ["MG Road", "Jubilee Hills", "Banjara Hills", "Ameerpet", "Kukatpally", "Madhapur"]
MENU_ITEMS = [
    {"id": "cp100", "price": 150},
    {"id": "cp250", "price": 350},
    {"id": "gulab", "price": 120},
    {"id": "nuvvula", "price": 180},
    {"name": "Murukulu 150 g", "price": 90},
]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "phone": f"9{random.randint(100000000, 999999999)}",
        "address": f"{random.randint(1, 999)} {random.choice(STREETS)}",
    }


def generate_random_items() -> list[dict]:
    """Generate random order items."""
    items = []
    for _ in range(random.randint(1, 4)):
        item = random.choice(MENU_ITEMS).copy()
        item["qty"] = random.randint(1, 3)
        items.append(item)
    return items


def generate_order_payload() -> dict[str, Any]:
    """Payload for POST /order, shaped like the checkout form."""
    return {**generate_random_customer(), "items": generate_random_items()}


def expected_total(items: list[dict]) -> float:
    return round(sum(i["qty"] * i["price"] for i in items), 2)


async def send_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Place one order and time it."""
    payload = generate_order_payload()
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/order", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data.get("orderId"),
                "total": data.get("totalAmount"),
                "expected_total": expected_total(payload["items"]),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def send_status_update(
    client: httpx.AsyncClient,
    tracking_id: str,
    new_status: str,
) -> bool:
    try:
        response = await client.post(
            f"{API_BASE_URL}/update-status",
            json={"trackingId": tracking_id, "newStatus": new_status},
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        print(f"   ❌ {tracking_id}: {e}")
        return False
    return response.status_code == 200


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the chaos simulation.

    Args:
        num_orders: Number of orders to place concurrently
    """
    print("=" * 70)
    print("🔥 CHAOS SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        print("\n🚀 Firing orders...\n")
        results = await asyncio.gather(*(send_order(client, i + 1) for i in range(num_orders)))

        successful = [r for r in results if r["success"]]
        tracking_ids = [r["order_id"] for r in successful]

        # Half the orders go out for delivery, concurrently
        sample = tracking_ids[: len(tracking_ids) // 2]
        print(f"🚚 Sending {len(sample)} orders out for delivery...\n")
        updates = await asyncio.gather(
            *(send_status_update(client, tid, "Out for Delivery") for tid in sample)
        )

        response = await client.get(f"{API_BASE_URL}/api/orders", timeout=30.0)
        stored = {o["trackingId"]: o for o in response.json()}

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]

    missing = [tid for tid in tracking_ids if tid not in stored]
    lost_updates = [tid for tid in sample if stored.get(tid, {}).get("status") != "Out for Delivery"]
    wrong_totals = [
        r["order_id"] for r in successful
        if abs(r["total"] - r["expected_total"]) > 0.001
    ]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"🚚 Status Updates Accepted: {sum(updates)}/{len(sample)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{sum(r['total'] for r in successful):.2f}")

    print("\n🔍 Consistency:")
    print(f"   Distinct tracking IDs: {len(set(tracking_ids))}/{len(tracking_ids)}")
    print(f"   Missing from /api/orders: {len(missing)}")
    print(f"   Lost status updates: {len(lost_updates)}")
    print(f"   Wrong totals: {len(wrong_totals)}")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("Next: python scripts/verify.py")
    print("=" * 70)

    consistent = not (missing or lost_updates or wrong_totals) and len(set(tracking_ids)) == len(tracking_ids)
    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "consistent": consistent,
        "total_time": total_time,
    }


async def preflight_checks() -> bool:
    """Make sure the server is up before the chaos run."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Server unreachable: {e}")
            return False
        data = response.json()
        print(f"   Status: {data.get('status')}")
        print(f"   Storage: {data.get('storage')}")
        if data.get("status") != "operational":
            return False

        print("\n2️⃣ Rejects an empty order...")
        response = await client.post(f"{API_BASE_URL}/order", json={"name": "A", "phone": "1", "items": []})
        print(f"   {'✅' if response.status_code == 400 else '❌'} HTTP {response.status_code}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Chaos Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_checks and not asyncio.run(preflight_checks()):
        print("\n❌ Pre-flight checks failed. Fix issues before running simulation.")
        sys.exit(1)

    summary = asyncio.run(run_simulation(args.orders))
    sys.exit(0 if summary["consistent"] else 1)
