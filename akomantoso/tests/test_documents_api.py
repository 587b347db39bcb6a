from fastapi.testclient import TestClient

from akomantoso.app.config import Settings, get_settings
from akomantoso.app.document.akn_document import AKNDocument
from akomantoso.app.main import app
from akomantoso.tests.fixtures.documents import sample_elements

app.dependency_overrides[get_settings] = lambda: Settings()

client = TestClient(app)

SOFTWARE_SIGNATURE = {
    "kind": "software",
    "signer_ref": "sw1",
    "signer_name": "Notary-bot",
    "signature_value": "c2ln",
}

HUMAN_SIGNATURE = {
    "kind": "human",
    "signer_ref": "sig1",
    "signer_name": "Alice",
    "role_ref": "role1",
    "role_name": "Signer",
    "key_href": "https://keys.example.org/alice.pem",
    "key_material": "MCowBQYDK2VwAyEA",
    "timestamp": "2024-03-02",
    "signature_value": "c2lnbmF0dXJl",
}


def _build(mode: str = "full", signatures=None):
    return client.post(
        "/documents",
        params={"mode": mode},
        json={
            "document": sample_elements(),
            "signatures": signatures or [],
        },
    )


def test_full_document_includes_conclusions():
    response = _build(signatures=[HUMAN_SIGNATURE, SOFTWARE_SIGNATURE])

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "conclusion_signature_1_pers" in response.text
    assert "conclusion_signature_2_sw" in response.text
    assert response.headers["x-payload-hash"].startswith("SHA-256:")


def test_payload_mode_withholds_conclusions():
    full = _build(signatures=[SOFTWARE_SIGNATURE])
    payload = _build(mode="payload", signatures=[SOFTWARE_SIGNATURE])
    unsigned = _build(mode="payload")

    assert payload.status_code == 200
    assert "<conclusions>" not in payload.text
    assert payload.text == unsigned.text
    assert (
        payload.headers["x-payload-hash"]
        == full.headers["x-payload-hash"]
        == unsigned.headers["x-payload-hash"]
    )


def test_malformed_document_is_rejected():
    elements = sample_elements()
    elements["mainBody"][0].pop("p")

    response = client.post("/documents", json={"document": elements})

    assert response.status_code == 422


def test_unknown_signature_kind_is_rejected():
    response = _build(signatures=[{**SOFTWARE_SIGNATURE, "kind": "robot"}])

    assert response.status_code == 422


def test_parse_endpoint_returns_tree_and_ledger():
    built = _build(signatures=[SOFTWARE_SIGNATURE])

    response = client.post(
        "/documents/parse",
        content=built.text.encode("utf-8"),
        headers={"Content-Type": "application/xml"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["signatures"] == [{**SOFTWARE_SIGNATURE, "sequence": 1}]
    assert "conclusions" not in body["tree"]["akomaNtoso"]["doc"]
    assert body["payload_hash"] == built.headers["x-payload-hash"]


def test_parse_endpoint_rejects_foreign_text():
    response = client.post(
        "/documents/parse",
        content=b"<html><body/></html>",
        headers={"Content-Type": "application/xml"},
    )

    assert response.status_code == 422


def test_invalid_paragraph_key_is_rejected():
    elements = sample_elements([{"blockTitle": "A", "p": {"bad key": "x"}}])

    response = client.post("/documents", json={"document": elements})

    assert response.status_code == 422


def test_content_that_cannot_be_written_as_xml_is_rejected():
    elements = sample_elements([{"blockTitle": "A", "p": {"#": "nul\x00"}}])

    response = client.post(
        "/documents", params={"mode": "payload"}, json={"document": elements}
    )

    assert response.status_code == 422
    assert "serialize" in response.json()["detail"]


def test_parse_endpoint_honours_declared_encoding():
    document = AKNDocument(settings=Settings(encoding="ISO-8859-1"))
    elements = sample_elements()
    elements["prefaceTitle"] = "Café"
    document.new_document(elements)

    response = client.post(
        "/documents/parse",
        content=document.to_text().encode("ISO-8859-1"),
        headers={"Content-Type": "application/xml"},
    )

    assert response.status_code == 200
    preface = response.json()["tree"]["akomaNtoso"]["doc"]["preface"]
    assert preface["longTitle"]["p"] == "Café"
