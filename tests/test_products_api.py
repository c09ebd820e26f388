"""
商品 API 测试
"""
import json
from decimal import Decimal

import pytest

from pm_core.middleware.auth import create_access_token

from conftest import auth_headers, count_products, load_vendor

PRODUCT_FORM = {
    "name": "Laser Pointer Pro",
    "description": "Endless chasing",
    "category": "Toys",
    "sub_category": "Laser Pointers",
    "stock": "12",
    "price": "9.99",
}


def _image(filename: str = "laser.png"):
    return ("files", (filename, b"\x89PNG fake", "image/png"))


@pytest.fixture
def products_url(api_prefix):
    return f"{api_prefix}/products"


async def _create(client, products_url, vendor_id, form=None, files=None, headers=None):
    return await client.post(
        f"{products_url}/vendors/{vendor_id}",
        data=form or PRODUCT_FORM,
        files=files if files is not None else [_image()],
        headers=headers if headers is not None else auth_headers(),
    )


class TestCreateProductApi:

    async def test_create(self, client, products_url, vendor, db_manager):
        response = await _create(client, products_url, vendor.id)

        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        product = body["data"]
        assert product["name"] == "Laser Pointer Pro"
        assert product["sub_category"] == "Laser Pointers"
        assert product["stock"] == 12
        assert Decimal(product["price"]) == Decimal("9.99")
        assert product["image_urls"] == ["https://images.test/products/laser.png"]

        stored_vendor = await load_vendor(db_manager, vendor.id)
        assert stored_vendor.product_ids == [product["id"]]

    async def test_multiple_images_keep_order(self, client, products_url, vendor):
        response = await _create(
            client, products_url, vendor.id, files=[_image("front.png"), _image("back.png")]
        )

        assert response.json()["data"]["image_urls"] == [
            "https://images.test/products/front.png",
            "https://images.test/products/back.png",
        ]

    async def test_requires_authentication(self, client, products_url, vendor, db_manager):
        response = await _create(client, products_url, vendor.id, headers={})

        assert response.status_code == 401
        assert response.json()["ok"] is False
        assert await count_products(db_manager) == 0

    async def test_shopper_is_forbidden(self, client, products_url, vendor, db_manager):
        response = await _create(
            client, products_url, vendor.id, headers=auth_headers(user_id=2, role="shopper")
        )

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "NOT_A_VENDOR"
        assert error["detail"] == "Cannot create product, you are not a vendor"
        assert await count_products(db_manager) == 0

    async def test_without_files(self, client, products_url, vendor, db_manager):
        response = await client.post(
            f"{products_url}/vendors/{vendor.id}",
            data=PRODUCT_FORM,
            headers=auth_headers(),
        )

        assert response.status_code == 400
        assert response.json()["error"]["detail"] == "No files uploaded."
        assert await count_products(db_manager) == 0

    async def test_unknown_vendor(self, client, products_url, vendor):
        response = await _create(client, products_url, 999)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "VENDOR_NOT_FOUND"

    async def test_upload_failure(self, client, products_url, vendor, image_storage, db_manager):
        image_storage.fail = True

        response = await _create(client, products_url, vendor.id)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "IMAGE_UPLOAD_FAILED"
        assert await count_products(db_manager) == 0


class TestBrowseProductsApi:

    @pytest.fixture
    async def catalog(self, client, products_url, vendor):
        created = {}
        for name, category, sub_category in [
            ("Hat", "Clothes", "Hats"),
            ("Socks", "Clothes", "Socks"),
            ("Ball", "Toys", "Balls"),
        ]:
            form = dict(PRODUCT_FORM, name=name, category=category, sub_category=sub_category)
            response = await _create(client, products_url, vendor.id, form=form)
            created[name] = response.json()["data"]
        return created

    @staticmethod
    def _names(response):
        return sorted(product["name"] for product in response.json()["data"])

    async def test_empty_catalog(self, client, products_url):
        response = await client.get(products_url)

        assert response.status_code == 200
        assert response.json()["data"] == []
        assert response.json()["metadata"] == {"total": 0}

    async def test_list_without_filter(self, client, products_url, catalog):
        response = await client.get(products_url)

        assert self._names(response) == ["Ball", "Hat", "Socks"]
        assert response.json()["metadata"] == {"total": 3}

    async def test_single_category(self, client, products_url, catalog):
        response = await client.get(products_url, params={"category": "Hats"})
        assert self._names(response) == ["Hat"]

    async def test_repeated_category(self, client, products_url, catalog):
        response = await client.get(products_url, params=[("category", "Clothes"), ("category", "Socks")])
        assert self._names(response) == ["Socks"]

    async def test_unknown_category_is_unfiltered(self, client, products_url, catalog):
        response = await client.get(products_url, params={"category": "Bogus"})
        assert self._names(response) == ["Ball", "Hat", "Socks"]

    async def test_browsing_is_anonymous(self, client, products_url, catalog):
        response = await client.get(products_url, params={"category": "Toys"})

        assert response.status_code == 200
        assert response.json()["data"][0]["vendor"]["name"] == "Whisker Goods"

    async def test_get_product(self, client, products_url, catalog, vendor):
        hat = catalog["Hat"]

        response = await client.get(f"{products_url}/{hat['id']}")

        assert response.status_code == 200
        product = response.json()["data"]
        assert product["name"] == "Hat"
        assert product["vendor"]["id"] == vendor.id

    async def test_get_missing_product(self, client, products_url):
        response = await client.get(f"{products_url}/424242")

        assert response.status_code == 404
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["status"] == 404
        assert body["error"]["code"] == "PRODUCT_NOT_FOUND"

    async def test_non_numeric_id(self, client, products_url):
        response = await client.get(f"{products_url}/not-a-number")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestEditProductApi:

    async def test_edit(self, client, products_url, vendor):
        created = (await _create(client, products_url, vendor.id)).json()["data"]

        response = await client.put(
            f"{products_url}/{created['id']}",
            data={
                "price": "14.50",
                "existing_urls": json.dumps(created["image_urls"]),
            },
            files=[_image("new.png")],
            headers=auth_headers(),
        )

        assert response.status_code == 200
        product = response.json()["data"]
        assert Decimal(product["price"]) == Decimal("14.50")
        assert product["name"] == "Laser Pointer Pro"
        assert product["image_urls"] == created["image_urls"] + ["https://images.test/products/new.png"]

    async def test_shopper_cannot_edit(self, client, products_url, vendor):
        created = (await _create(client, products_url, vendor.id)).json()["data"]

        response = await client.put(
            f"{products_url}/{created['id']}",
            data={"name": "Mine now"},
            headers=auth_headers(user_id=2, role="shopper"),
        )

        assert response.status_code == 403
        assert response.json()["error"]["detail"] == "Cannot edit product, you are not a vendor"

    async def test_malformed_existing_urls(self, client, products_url, vendor):
        created = (await _create(client, products_url, vendor.id)).json()["data"]

        response = await client.put(
            f"{products_url}/{created['id']}",
            data={"existing_urls": "[broken"},
            headers=auth_headers(),
        )

        assert response.status_code == 500
        assert response.json()["ok"] is False


class TestDeleteProductApi:

    async def test_delete(self, client, products_url, vendor, db_manager):
        created = (await _create(client, products_url, vendor.id)).json()["data"]

        response = await client.delete(
            f"{products_url}/{created['id']}/vendors/{vendor.id}", headers=auth_headers()
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "message": "Product deleted successfully",
            "product_id": created["id"],
        }
        assert (await load_vendor(db_manager, vendor.id)).product_ids == []
        assert (await client.get(f"{products_url}/{created['id']}")).status_code == 404

    async def test_missing_vendor_reports_not_found_after_delete(self, client, products_url, vendor):
        created = (await _create(client, products_url, vendor.id)).json()["data"]

        response = await client.delete(
            f"{products_url}/{created['id']}/vendors/999", headers=auth_headers()
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "VENDOR_NOT_FOUND"
        assert (await client.get(f"{products_url}/{created['id']}")).status_code == 404

    async def test_requires_authentication(self, client, products_url, vendor):
        created = (await _create(client, products_url, vendor.id)).json()["data"]

        response = await client.delete(f"{products_url}/{created['id']}/vendors/{vendor.id}")

        assert response.status_code == 401


class TestAuthAndPlumbing:

    async def test_bad_auth_scheme(self, client, products_url):
        response = await client.get(products_url, headers={"Authorization": "Token abc"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_AUTH_FORMAT"

    async def test_invalid_token(self, client, products_url):
        response = await client.get(products_url, headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_expired_token(self, client, products_url, vendor):
        token = create_access_token(1, "vendor", expires_minutes=-5)

        response = await _create(
            client, products_url, vendor.id, headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    async def test_categories(self, client, api_prefix):
        response = await client.get(f"{api_prefix}/categories")

        assert response.status_code == 200
        categories = response.json()["data"]
        assert categories[0] == {"name": "Clothes", "subcategories": ["Costumes", "Hats", "Socks"]}
        assert [c["name"] for c in categories][-1] == "Litter"

    async def test_healthz(self, client):
        response = await client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_trace_id_is_echoed(self, client, products_url):
        response = await client.get(products_url, headers={"X-Trace-Id": "trace-123"})

        assert response.headers["X-Trace-Id"] == "trace-123"

    async def test_trace_id_is_generated(self, client, products_url):
        response = await client.get(products_url)

        assert response.headers.get("X-Trace-Id")

    async def test_unknown_route(self, client, api_prefix):
        response = await client.get(f"{api_prefix}/nothing-here")

        assert response.status_code == 404
        assert response.json()["ok"] is False
