"""Canned platform payloads and request helpers shared by the tests."""

import json
from urllib.parse import parse_qs

import httpx
import pendulum

SHOP = "https://demo-shop.myshopify.com"
ADMIN = f"{SHOP}/admin/api/2024-10"
ERP = "https://erp.example.com/v2"
TOKEN_URL = "https://login.erp.example.com/oauth2/token"


class FakeClock:
    def __init__(self, start=None):
        self.now = start or pendulum.datetime(2024, 5, 1, 8, 0, 0, tz="UTC")

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + pendulum.duration(**kwargs)


def variant_payload(sku, variant_id, price, *, tracked=True, inventory_item_id=None):
    return {
        "id": variant_id,
        "sku": sku,
        "price": price,
        "inventory_item_id": inventory_item_id if inventory_item_id is not None else variant_id + 5000,
        "inventory_management": "shopify" if tracked else None,
    }


def product_payload(product_id, *variants):
    return {"id": product_id, "variants": list(variants)}


def erp_item(item_id, reference, reference_price="0", purchase_amount="0", kind="product"):
    return {
        "id": item_id,
        "type": kind,
        "reference": reference,
        "reference_price": reference_price,
        "purchase_amount": purchase_amount,
    }


def catalog_pages(*pages):
    """side_effect serving product listing pages keyed by the since_id cursor."""
    by_cursor = {}
    cursor = None
    for page in pages:
        by_cursor[cursor] = page
        cursor = str(page[-1]["id"]) if page else cursor

    def respond(request):
        since_id = request.url.params.get("since_id")
        return httpx.Response(200, json={"products": by_cursor.get(since_id, [])})

    return respond


def request_json(request):
    return json.loads(request.content)


def request_form(request):
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
