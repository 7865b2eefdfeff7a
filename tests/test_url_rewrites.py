import pytest

from apps.url_rewrites.service import UrlRewriteService, format_url_key
from common.exceptions import InputException, NoSuchEntityException
from tests.factories import FIXTURE_CATEGORY_ID, bearer, build_category


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Category 1", "category-1"),
        ("  Summer -- Sale!  ", "summer-sale"),
        ("Crème Brûlée", "creme-brulee"),
        ("already-a-key", "already-a-key"),
        ("", ""),
        (None, ""),
    ],
)
def test_format_url_key(value, expected):
    assert format_url_key(value) == expected


@pytest.mark.asyncio
async def test_nested_request_path_skips_roots(db, fixture_category):
    child = await build_category(db, 600, "Men", parent_id=FIXTURE_CATEGORY_ID, attributes={"url_key": "men"})
    grandchild = await build_category(db, 601, "Shoes & Boots", parent_id=600)

    assert await UrlRewriteService.build_category_request_path(db, child) == "category-1/men.html"
    assert await UrlRewriteService.build_category_request_path(db, grandchild) == "category-1/men/shoes-boots.html"


@pytest.mark.asyncio
async def test_roots_have_no_request_path(db):
    from models.category import Category

    default_root = await db.get(Category, 2)

    assert await UrlRewriteService.build_category_request_path(db, default_root) is None
    assert await UrlRewriteService.generate_for_category(db, default_root) is None


@pytest.mark.asyncio
async def test_generate_rejects_path_owned_by_other_entity(db, fixture_category):
    other = await build_category(db, 700, "Other", attributes={"url_key": "other"})
    other.set_custom_attribute("url_key", "category-1")

    with pytest.raises(InputException) as exc:
        await UrlRewriteService.generate_for_category(db, other)

    assert exc.value.parameters == {"requestPath": "category-1.html"}


@pytest.mark.asyncio
async def test_lookup_endpoint(client, admin_headers, fixture_category):
    response = await client.get(
        "/api/url-rewrites", params={"entity_id": FIXTURE_CATEGORY_ID, "entity_type": "category"}, headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["request_path"] == "category-1.html"
    assert body["target_path"] == "catalog/category/view/id/333"
    assert body["is_autogenerated"] is True
    assert body["store_id"] == 1


@pytest.mark.asyncio
async def test_lookup_endpoint_requires_token(client):
    response = await client.get("/api/url-rewrites", params={"entity_id": 1}, headers=bearer("garbage"))

    assert response.status_code == 401


def test_error_message_rendering():
    exc = NoSuchEntityException("id", 42)

    assert exc.status_code == 404
    assert exc.template == "No such entity with %fieldName = %fieldValue"
    assert exc.message == "No such entity with id = 42"
    assert exc.detail == exc.message


def test_error_message_prefers_longest_parameter_name():
    exc = InputException("%field / %fieldValue", {"field": "a", "fieldValue": "b"})

    assert exc.message == "a / b"
    assert exc.status_code == 400
