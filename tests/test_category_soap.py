"""SOAP 1.2 binding of the category repository."""

import xml.etree.ElementTree as ET

import pytest

from apps.url_rewrites.service import UrlRewriteService
from constants.acl import CATEGORIES
from models.category import Category
from tests.factories import (
    FIXTURE_CATEGORY_ID,
    RESTRICTED_PASSWORD,
    RESTRICTED_USERNAME,
    bearer,
    build_category,
    build_role,
    build_user,
    issue_token,
)

pytestmark = pytest.mark.asyncio

SERVICE_NAME = "catalogCategoryRepositoryV1"
SOAP_PATH = f"/soap/{SERVICE_NAME}"
ENV = "{http://www.w3.org/2003/05/soap-envelope}"
NS1 = "{urn:" + SERVICE_NAME + "}"


def envelope(operation, body_xml=""):
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<env:Envelope xmlns:env="http://www.w3.org/2003/05/soap-envelope" '
        f'xmlns:ns1="urn:{SERVICE_NAME}">'
        f"<env:Body><ns1:{operation}>{body_xml}</ns1:{operation}></env:Body>"
        "</env:Envelope>"
    ).encode("utf-8")


async def call(client, operation, body_xml="", headers=None):
    return await client.post(
        SOAP_PATH,
        content=envelope(operation, body_xml),
        headers={"Content-Type": "application/soap+xml; charset=utf-8", **(headers or {})},
    )


def result_of(response, operation):
    root = ET.fromstring(response.content)
    return root.find(f"{ENV}Body/{NS1}{operation}Response/result")


def fault_of(response, service_name=SERVICE_NAME):
    ns1 = "{urn:" + service_name + "}"
    root = ET.fromstring(response.content)
    fault = root.find(f"{ENV}Body/{ENV}Fault")
    assert fault is not None, response.text
    parameters = {
        p.find(f"{ns1}key").text: p.find(f"{ns1}value").text
        for p in fault.iter(f"{ns1}GenericFaultParameter")
    }
    return {
        "code": fault.find(f"{ENV}Code/{ENV}Value").text,
        "reason": fault.find(f"{ENV}Reason/{ENV}Text").text,
        "parameters": parameters,
        "http_status": fault.find(f"{ENV}Detail/{ns1}GenericFault/{ns1}HttpStatus").text,
    }


async def test_get(client, admin_headers, fixture_category):
    response = await call(client, f"{SERVICE_NAME}Get", f"<categoryId>{FIXTURE_CATEGORY_ID}</categoryId>", admin_headers)

    assert response.status_code == 200, response.text
    assert response.headers["content-type"].startswith("application/soap+xml")
    result = result_of(response, f"{SERVICE_NAME}Get")
    assert result.findtext("id") == "333"
    assert result.findtext("parentId") == "2"
    assert result.findtext("path") == "1/2/333"
    assert result.findtext("level") == "2"
    assert result.findtext("name") == "Category 1"
    assert result.findtext("isActive") == "true"
    assert [i.text for i in result.find("availableSortBy")] == ["position", "name"]
    attributes = {
        i.findtext("attributeCode"): i.findtext("value") for i in result.find("customAttributes")
    }
    assert attributes["url_key"] == "category-1"


async def test_get_no_such_entity(client, admin_headers):
    response = await call(client, f"{SERVICE_NAME}Get", "<categoryId>-1</categoryId>", admin_headers)

    assert response.status_code == 400
    fault = fault_of(response)
    assert fault["code"] == "env:Sender"
    assert "No such entity with %fieldName = %fieldValue" in fault["reason"]
    assert fault["parameters"] == {"fieldName": "id", "fieldValue": "-1"}
    assert fault["http_status"] == "404"


async def test_create_and_delete(client, admin_headers, session_factory):
    category_xml = (
        "<category>"
        "<parentId>2</parentId>"
        "<name>Soap Category</name>"
        "<isActive>true</isActive>"
        "<includeInMenu>true</includeInMenu>"
        "<availableSortBy><item>position</item><item>name</item></availableSortBy>"
        "<customAttributes>"
        "<item><attributeCode>description</attributeCode><value>Made over SOAP</value></item>"
        "<item><attributeCode>url_key</attributeCode><value></value></item>"
        "</customAttributes>"
        "</category>"
    )

    response = await call(client, f"{SERVICE_NAME}Save", category_xml, admin_headers)

    assert response.status_code == 200, response.text
    result = result_of(response, f"{SERVICE_NAME}Save")
    category_id = int(result.findtext("id"))
    assert category_id > 0
    assert result.findtext("name") == "Soap Category"
    async with session_factory() as session:
        rewrite = await UrlRewriteService.find_one_by_data(session, category_id)
    assert rewrite.request_path == "soap-category.html"

    response = await call(client, f"{SERVICE_NAME}DeleteByIdentifier", f"<categoryId>{category_id}</categoryId>", admin_headers)

    assert response.status_code == 200, response.text
    assert result_of(response, f"{SERVICE_NAME}DeleteByIdentifier").text == "true"
    async with session_factory() as session:
        assert await session.get(Category, category_id) is None
        assert await UrlRewriteService.find_one_by_data(session, category_id) is None


async def test_update(client, admin_headers, fixture_category):
    category_xml = (
        f"<category><id>{FIXTURE_CATEGORY_ID}</id><name>Soap Renamed</name><isActive>false</isActive></category>"
    )

    response = await call(client, f"{SERVICE_NAME}Save", category_xml, admin_headers)

    assert response.status_code == 200, response.text
    result = result_of(response, f"{SERVICE_NAME}Save")
    assert result.findtext("id") == "333"
    assert result.findtext("name") == "Soap Renamed"
    assert result.findtext("isActive") == "false"
    assert result.findtext("path") == "1/2/333"


async def test_save_with_invalid_value(client, admin_headers, fixture_category):
    category_xml = f"<category><id>{FIXTURE_CATEGORY_ID}</id><isActive>sometimes</isActive></category>"

    response = await call(client, f"{SERVICE_NAME}Save", category_xml, admin_headers)

    fault = fault_of(response)
    assert response.status_code == 400
    assert fault["reason"] == "Invalid value of %fieldName provided."
    assert fault["parameters"] == {"fieldName": "is_active"}


@pytest.mark.parametrize("category_id", [1, 2])
async def test_delete_system_or_root(client, admin_headers, category_id):
    response = await call(client, f"{SERVICE_NAME}DeleteByIdentifier", f"<categoryId>{category_id}</categoryId>", admin_headers)

    fault = fault_of(response)
    assert response.status_code == 400
    assert fault["http_status"] == "403"
    assert fault["parameters"] == {"categoryId": str(category_id)}


async def test_delete_no_such_entity(client, admin_headers):
    response = await call(client, f"{SERVICE_NAME}DeleteByIdentifier", "<categoryId>-1</categoryId>", admin_headers)

    fault = fault_of(response)
    assert "No such entity with %fieldName = %fieldValue" in fault["reason"]
    assert fault["http_status"] == "404"


async def test_missing_argument(client, admin_headers):
    response = await call(client, f"{SERVICE_NAME}Get", "", admin_headers)

    fault = fault_of(response)
    assert fault["parameters"] == {"fieldName": "category_id"}


async def test_unknown_operation(client, admin_headers):
    response = await call(client, f"{SERVICE_NAME}GetList", "", admin_headers)

    fault = fault_of(response)
    assert response.status_code == 400
    assert fault["parameters"] == {"operation": f"{SERVICE_NAME}GetList"}


async def test_unknown_service(client, admin_headers):
    response = await client.post("/soap/catalogProductRepositoryV1", content=envelope("catalogProductRepositoryV1Get"), headers=admin_headers)

    fault = fault_of(response, "catalogProductRepositoryV1")
    assert response.status_code == 400
    assert fault["http_status"] == "404"
    assert fault["parameters"] == {"service": "catalogProductRepositoryV1"}


async def test_requires_token(client, fixture_category):
    response = await call(client, f"{SERVICE_NAME}Get", f"<categoryId>{FIXTURE_CATEGORY_ID}</categoryId>")

    fault = fault_of(response)
    assert response.status_code == 400
    assert fault["http_status"] == "401"


async def test_requires_categories_resource(client, user_with_new_role):
    token = await issue_token(client, RESTRICTED_USERNAME, RESTRICTED_PASSWORD)

    response = await call(client, f"{SERVICE_NAME}Get", "<categoryId>2</categoryId>", bearer(token))

    assert fault_of(response)["http_status"] == "403"


async def test_malformed_envelope(client, admin_headers):
    response = await client.post(SOAP_PATH, content=b"<env:Envelope", headers=admin_headers)

    fault = fault_of(response)
    assert response.status_code == 400
    assert fault["reason"].startswith("Malformed SOAP envelope")


async def test_design_change_denied(client, db, fixture_category):
    role = await build_role(db, "soap_editors", [CATEGORIES])
    await build_user(db, "soap_editor", "editor123", role)
    token = await issue_token(client, "soap_editor", "editor123")
    category_xml = (
        f"<category><id>{FIXTURE_CATEGORY_ID}</id><customAttributes>"
        "<item><attributeCode>custom_design</attributeCode><value>2</value></item>"
        "</customAttributes></category>"
    )

    response = await call(client, f"{SERVICE_NAME}Save", category_xml, bearer(token))

    assert response.status_code == 200, response.text
    result = result_of(response, f"{SERVICE_NAME}Save")
    codes = [i.findtext("attributeCode") for i in result.find("customAttributes")]
    assert "custom_design" not in codes


async def test_fetched_category_saves_back_unchanged(client, admin_headers, db):
    category = await build_category(db, 800, "Bare Category")
    category.available_sort_by = []
    await db.commit()

    fetched = await call(client, f"{SERVICE_NAME}Get", "<categoryId>800</categoryId>", admin_headers)
    result = result_of(fetched, f"{SERVICE_NAME}Get")
    assert result.find("availableSortBy") is not None and len(result.find("availableSortBy")) == 0
    assert len(result.find("customAttributes")) == 0
    category_xml = "<category>" + "".join(ET.tostring(child, encoding="unicode") for child in result) + "</category>"

    response = await call(client, f"{SERVICE_NAME}Save", category_xml, admin_headers)

    assert response.status_code == 200, response.text
    saved = result_of(response, f"{SERVICE_NAME}Save")
    assert saved.findtext("id") == "800"
    assert saved.findtext("name") == "Bare Category"
    assert len(saved.find("availableSortBy")) == 0
    assert len(saved.find("customAttributes")) == 0
