import httpx
import respx

from catalogsync.logic.importer import ImportStatus, ProductImporter
from catalogsync.models import CreatedProduct

from payloads import ADMIN, request_json

PRODUCTS = f"{ADMIN}/products.json"


class FakeShop:
    """Just enough of the product endpoints to exercise title de-duplication."""

    def __init__(self):
        self.products = []

    def listing(self, request):
        title = request.url.params.get("title")
        if title is None:
            return httpx.Response(200, json={"products": []})
        return httpx.Response(200, json={"products": [p for p in self.products if title in p["title"]]})

    def create(self, request):
        product = request_json(request)["product"]
        if product["title"] == "Broken":
            return httpx.Response(422, json={"errors": {"title": ["is invalid"]}})
        created = {"id": 1000 + len(self.products), "handle": product["title"].lower(), "title": product["title"]}
        self.products.append(created)
        return httpx.Response(201, json={"product": {**created, "variants": [], "images": []}})


def mock_shop(router):
    shop = FakeShop()
    router.get(PRODUCTS).mock(side_effect=shop.listing)
    create = router.post(PRODUCTS).mock(side_effect=shop.create)
    return shop, create


def test_same_title_twice_creates_once(storefront):
    importer = ProductImporter(storefront)
    with respx.mock(assert_all_called=True) as router:
        _, create = mock_shop(router)
        first = importer.import_record({"title": "Mug", "price": 12})
        second = importer.import_record({"title": "Mug", "price": 14})
    assert create.call_count == 1
    assert first.status is ImportStatus.CREATED
    assert first.product_id == 1000
    assert second.status is ImportStatus.SKIPPED
    assert second.product_id == 1000


def test_prefix_title_is_not_a_duplicate(storefront):
    importer = ProductImporter(storefront)
    with respx.mock(assert_all_called=True) as router:
        _, create = mock_shop(router)
        importer.import_record({"title": "Mug XL", "price": 12})
        outcome = importer.import_record({"title": "Mug", "price": 12})
    assert outcome.status is ImportStatus.CREATED
    assert create.call_count == 2


def test_batch_isolates_failures(storefront):
    records = [
        {"title": "Mug", "price": 12, "sourceUrl": "https://shop.example.com/mug"},
        {"price": 3},
        {"title": "Broken", "price": 5},
        {"title": "Plate", "price": "7.5", "variants": ["Small", "Large"], "images": ["https://img/plate.jpg"]},
        {"title": "Mug", "price": 12},
    ]
    with respx.mock(assert_all_called=True) as router:
        mock_shop(router)
        report = ProductImporter(storefront).import_batch(records)
    assert report.counts == {"created": 2, "skipped": 1, "failed": 2}
    assert report.message == "2 product(s) imported, 1 skipped (duplicate), 2 error(s)"
    assert report.created[0].source_url == "https://shop.example.com/mug"
    assert report.created[1].variants_count == 2
    assert report.created[1].images_count == 1
    missing_title, rejected = report.failed
    assert missing_title.title == "Unknown"
    assert "title" in missing_title.error
    assert rejected.title == "Broken"
    assert "is invalid" in rejected.error


def test_title_lookup_failure_fails_the_record(storefront):
    with respx.mock(assert_all_called=True) as router:
        router.get(PRODUCTS).mock(return_value=httpx.Response(503, text="unavailable"))
        outcome = ProductImporter(storefront).import_record({"title": "Mug", "price": 1})
    assert outcome.status is ImportStatus.FAILED
    assert "503" in outcome.error


def test_malformed_records_fail_without_stopping_the_batch(storefront):
    records = [
        {"title": "Nan discount", "price": 5, "discount": "NaN"},
        {"title": "Nan old price", "price": 5, "oldPrice": "NaN"},
        {"title": "Infinite variant", "price": 5, "variants": [{"name": "X", "price": "Infinity"}]},
        {"title": "List metadata", "price": 5, "metadata": ["x"]},
        {"title": "String variants", "price": 5, "variants": "Red"},
        "not a product",
        {"title": "Good", "price": 5},
    ]
    with respx.mock(assert_all_called=True) as router:
        _, create = mock_shop(router)
        report = ProductImporter(storefront).import_batch(records)
    assert report.counts == {"created": 1, "skipped": 0, "failed": 6}
    assert create.call_count == 1
    assert report.created[0].title == "Good"
    assert [outcome.title for outcome in report.failed[:5]] == [
        "Nan discount",
        "Nan old price",
        "Infinite variant",
        "List metadata",
        "String variants",
    ]
    assert report.failed[5].title == "Unknown"


def test_unexpected_storefront_error_fails_only_that_record():
    class BrokenStorefront:
        def find_product_by_title(self, title):
            if title == "Bad":
                raise KeyError("id")
            return None

        def create(self, record):
            return CreatedProduct(id=7, handle="good", title=record.title)

    report = ProductImporter(BrokenStorefront()).import_batch(
        [{"title": "Bad", "price": 1}, {"title": "Good", "price": 1}]
    )
    assert report.counts == {"created": 1, "skipped": 0, "failed": 1}
    assert report.failed[0].error == "KeyError: 'id'"
    assert report.created[0].product_id == 7
