"""
Excel Verification Script

Verifies data integrity of the order workbook.
Run from project root: python scripts/verify.py [path/to/orders.xlsx]

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import os
import sys
from datetime import datetime

import pandas as pd

from order_tracker.core.config import get_settings


def _row_total(items_cell: str) -> float:
    try:
        items = json.loads(items_cell)
    except (TypeError, json.JSONDecodeError):
        return float("nan")
    return round(sum(float(i.get("qty", 0)) * float(i.get("price", 0)) for i in items), 2)


def verify_excel(excel_file: str) -> bool:
    """Verify the workbook after a simulation run."""
    settings = get_settings()

    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {excel_file}")
    print("=" * 60)

    if not os.path.exists(excel_file):
        print("\n❌ Excel file not found!")
        print("   Place an order first, or run: python scripts/simulate.py")
        return False

    try:
        df = pd.read_excel(
            excel_file,
            sheet_name=settings.orders_sheet,
            engine="openpyxl",
            dtype={"trackingId": str, "customerPhone": str, "items": str},
        )
        print("\n✅ File loaded successfully!")
    except Exception as e:
        print(f"\n❌ Could not read Excel file: {e}")
        return False

    ok = True

    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    required = ["trackingId", "customerName", "items", "totalAmount", "status"]
    missing = [col for col in required if col not in df.columns]
    if missing:
        print(f"\n⚠️ Missing Columns: {missing}")
        return False
    print("\n✅ All required columns present")

    duplicates = df["trackingId"].duplicated().sum()
    if duplicates > 0:
        print(f"⚠️ {duplicates} duplicate tracking IDs found!")
        ok = False
    else:
        print("✅ No duplicate tracking IDs")

    recomputed = df["items"].map(_row_total)
    mismatched = ((recomputed - df["totalAmount"]).abs() > 0.001).sum()
    if mismatched:
        print(f"⚠️ {mismatched} order(s) whose total does not match their items")
        ok = False
    else:
        print("✅ Every total matches its items")

    print("\n🚚 STATUS BREAKDOWN:")
    for status, count in df["status"].value_counts().items():
        print(f"   {status}: {count}")

    print("\n💰 REVENUE:")
    print(f"   Total: ₹{df['totalAmount'].sum():.2f}")
    if len(df) > 0:
        print(f"   Average: ₹{df['totalAmount'].mean():.2f}")

    print("\n📋 RECENT ORDERS:")
    print("-" * 60)
    if len(df) > 0:
        cols = ["trackingId", "customerName", "totalAmount", "status"]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else str(get_settings().orders_path)
    sys.exit(0 if verify_excel(path) else 1)
