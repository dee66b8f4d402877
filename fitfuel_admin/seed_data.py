#!/usr/bin/env python3
"""
seed_data.py

Generates reproducible sample documents for the admin dashboard as JSON files under a
local folder (default: the configured data_dir).

Collections:
- users, products, orders

Run:
  fitfuel-seed --orders 200 --days 45
"""

from __future__ import annotations
import argparse
import json
import os
import random
import sys
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fitfuel_admin.config import get_config
from fitfuel_admin.data.models import CATEGORIES, DeliveryStatus

# -----------------------------
# Config & helper structures
# -----------------------------

FIRST_NAMES = ["Aisha", "Ben", "Chloe", "Dev", "Elena", "Farid", "Grace", "Hiro", "Ines", "Jonah", "Kavya", "Liam"]
LAST_NAMES = ["Khan", "Okafor", "Smith", "Patel", "Garcia", "Nakamura", "Rossi", "Dubois", "Silva", "Novak"]
STREETS = ["Market St", "Lake Rd", "Hill Ave", "Park Ln", "Mill Rd", "Station Rd"]

PRODUCTS_BY_CATEGORY: Dict[str, List[str]] = {
    "Fruits": ["Alphonso Mango", "Red Apple", "Banana", "Kiwi", "Pomegranate", "Blueberries"],
    "Nuts": ["Almonds", "Cashews", "Walnuts", "Pistachios", "Peanuts"],
    "Beverages": ["Coconut Water", "Cold Brew", "Green Tea", "Orange Juice", "Protein Shake"],
    "Mixed Options": ["Trail Mix", "Fruit Bowl", "Breakfast Box", "Snack Pack"],
}
TAGS = ["organic", "fresh", "vegan", "high-protein", "gluten-free", "seasonal", "bestseller"]
WEIGHTS = ["100g", "250g", "500g", "1kg", "6 pcs", "1L", "330ml"]
PAYMENT_METHODS = ["card", "cash", "upi"]

# completed orders dominate older history; recent orders are still in flight
STATUS_WEIGHTS: Dict[DeliveryStatus, float] = {
    "pending": 0.10,
    "processing": 0.12,
    "shipped": 0.08,
    "out_for_delivery": 0.08,
    "completed": 0.52,
    "cancelled": 0.10,
}

# -----------------------------
# Utility functions
# -----------------------------

def ensure_dir(path: str) -> None:
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)

def price_round(p: float) -> float:
    return round(max(p, 0.01), 2)

def rand_phone(rnd: random.Random) -> str:
    return "+1-555-" + "".join(rnd.choices("0123456789", k=4))

def rand_address(rnd: random.Random) -> str:
    return f"{rnd.randint(1, 400)} {rnd.choice(STREETS)}"

# -----------------------------
# Core generators
# -----------------------------

def gen_users(n: int, rnd: random.Random) -> List[Dict]:
    users = []
    for i in range(1, n + 1):
        first, last = rnd.choice(FIRST_NAMES), rnd.choice(LAST_NAMES)
        user = {"id": f"u{i:04d}", "phone": rand_phone(rnd), "address": rand_address(rnd)}
        # some profiles only carry a display name
        if rnd.random() < 0.8:
            user["name"] = f"{first} {last}"
        else:
            user["displayName"] = first.lower()
        users.append(user)
    return users

def gen_products(n: int, rnd: random.Random, now: datetime) -> List[Dict]:
    products = []
    for i in range(1, n + 1):
        category = CATEGORIES[(i - 1) % len(CATEGORIES)]
        name = rnd.choice(PRODUCTS_BY_CATEGORY[category])
        price = price_round(rnd.uniform(1.5, 25.0))
        created = now - timedelta(days=rnd.randint(1, 180), minutes=rnd.randint(0, 1439))
        product = {
            "id": f"p{i:04d}",
            "name": f"{name} {rnd.choice(WEIGHTS)}",
            "price": price,
            "weight": rnd.choice(WEIGHTS),
            "deliveryTime": "10 min",
            "category": category,
            "description": f"{name} sourced for FitFuel.",
            "tags": rnd.sample(TAGS, k=rnd.randint(0, 3)),
            "inStock": rnd.random() < 0.85,
            "isFeatured": rnd.random() < 0.2,
            "isPopular": rnd.random() < 0.3,
            "image": None,
            "nutritionFacts": [
                {"name": "Calories", "value": str(rnd.randint(20, 600)), "unit": "kcal"},
                {"name": "Protein", "value": str(rnd.randint(0, 30)), "unit": "g"},
            ],
            "createdAt": created.isoformat(timespec="seconds"),
        }
        if rnd.random() < 0.3:
            product["discountPrice"] = price_round(price * rnd.uniform(0.7, 0.95))
        products.append(product)
    return products

def gen_orders(
    n: int,
    users: List[Dict],
    products: List[Dict],
    rnd: random.Random,
    now: datetime,
    days: int,
) -> List[Dict]:
    statuses = list(STATUS_WEIGHTS)
    weights = list(STATUS_WEIGHTS.values())
    orders = []
    for i in range(1, n + 1):
        user = rnd.choice(users)
        created = now - timedelta(minutes=rnd.randint(0, days * 24 * 60))
        lines = rnd.sample(products, k=min(len(products), rnd.randint(1, 4)))
        items = [
            {
                "name": p["name"],
                "price": p.get("discountPrice") or p["price"],
                "quantity": rnd.randint(1, 3),
            }
            for p in lines
        ]
        subtotal = price_round(sum(it["price"] * it["quantity"] for it in items))
        delivery_fee = 0.0 if subtotal >= 30 else 2.99
        status = rnd.choices(statuses, weights=weights)[0]
        order = {
            "id": f"o{i:05d}",
            "userId": user["id"],
            "items": items,
            "subtotal": subtotal,
            "deliveryFee": delivery_fee,
            "totalAmount": price_round(subtotal + delivery_fee),
            "deliveryStatus": status,
            "paymentMethod": rnd.choice(PAYMENT_METHODS),
            "paymentStatus": "paid" if status != "cancelled" and rnd.random() < 0.8 else "pending",
            "createdAt": created.isoformat(timespec="seconds"),
        }
        # most orders carry their own contact details; the rest fall back to the profile
        if rnd.random() < 0.6:
            order["address"] = rand_address(rnd)
            order["phoneNumber"] = rand_phone(rnd)
        orders.append(order)
    # a reference to a deleted user
    if orders:
        orders[-1]["userId"] = "u-missing"
    return orders

def write_json(path: str, docs: List[Dict]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(docs, f, indent=2)


# -----------------------------
# Main
# -----------------------------

def main(argv: Optional[List[str]] = None) -> int:
    config = get_config()

    parser = argparse.ArgumentParser(description="Generate sample admin-dashboard documents as JSON.")
    parser.add_argument("--users", type=int, default=config.default_seed_users)
    parser.add_argument("--products", type=int, default=config.default_seed_products)
    parser.add_argument("--orders", type=int, default=config.default_seed_orders)
    parser.add_argument("--days", type=int, default=config.default_seed_days, help="Days of order history.")
    parser.add_argument("--output-dir", type=str, default=config.data_dir)
    parser.add_argument("--seed", type=int, default=config.default_seed_value)
    parser.add_argument("--no-overwrite", action="store_true", help="Fail if JSON files already exist.")
    args = parser.parse_args(argv)

    if args.users < 1 or args.products < 1:
        print("At least one user and one product are required.", file=sys.stderr)
        return 2

    rnd = random.Random(args.seed)
    outdir = args.output_dir
    ensure_dir(outdir)

    files = {
        "users": os.path.join(outdir, "users.json"),
        "products": os.path.join(outdir, "products.json"),
        "orders": os.path.join(outdir, "orders.json"),
    }
    if args.no_overwrite:
        for p in files.values():
            if os.path.exists(p):
                print(f"Refusing to overwrite existing file: {p}", file=sys.stderr)
                return 2

    now = datetime.now().replace(microsecond=0)
    users = gen_users(args.users, rnd)
    products = gen_products(args.products, rnd, now)
    orders = gen_orders(args.orders, users, products, rnd, now, args.days)

    write_json(files["users"], users)
    write_json(files["products"], products)
    write_json(files["orders"], orders)

    # simple summary
    print(f"Generated data in {outdir}")
    print(f" users: {len(users)} | products: {len(products)} | orders: {len(orders)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
