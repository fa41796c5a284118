"""
Fire concurrent add-to-cart requests for one product into one cart and check
that no units were lost.

    python tools/concurrency_add.py --workers 16 --qty 1
"""
import argparse
import concurrent.futures
import os

import requests

BASE = os.environ.get("STOREFRONT_BASE", "http://127.0.0.1:8000")


def add_task(i, cart_uuid, product_id, qty):
    try:
        r = requests.post(
            f"{BASE}/api/cart/items",
            json={"product_id": product_id, "quantity": qty},
            cookies={"cart_uuid": cart_uuid},
            timeout=20,
        )
        return (i, r.status_code, r.json().get("saved") if r.ok else r.text)
    except requests.RequestException as e:
        return (i, "ERR", str(e))


def run(workers, qty, product_id=None):
    r = requests.get(f"{BASE}/api/cart", timeout=10)
    r.raise_for_status()
    cart_uuid = r.json()["cart_uuid"]

    if product_id is None:
        listing = requests.get(f"{BASE}/api/products", timeout=10).json()
        if not listing["items"]:
            raise SystemExit("Catalogue is empty; seed it first")
        product_id = listing["items"][0]["id"]

    print(f"Running add test: workers={workers}, qty={qty}, cart={cart_uuid}, product={product_id}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(add_task, i, cart_uuid, product_id, qty) for i in range(workers)]
        results = [f.result() for f in futures]
    for res in results:
        print(res)

    cart = requests.get(f"{BASE}/api/cart", cookies={"cart_uuid": cart_uuid}, timeout=10).json()
    line = next((it for it in cart["items"] if it["product_id"] == product_id), None)
    saved = sum(1 for res in results if res[1] == 200 and res[2] is True)
    expected = saved * qty
    got = line["quantity"] if line else 0
    print(f"Expected quantity={expected}, got={got}")
    return got == expected


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent add-to-cart check.")
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--product", default=None)
    args = parser.parse_args()
    ok = run(args.workers, args.qty, args.product)
    raise SystemExit(0 if ok else 1)
