from datetime import date

import pytest

from akomantoso.app.config import Settings
from akomantoso.app.document.akn_document import AKNDocument
from akomantoso.app.schemas.signatures import (
    HumanSignature,
    SignatureError,
    SoftwareSignature,
)
from akomantoso.tests.fixtures.documents import (
    human_signature_args,
    make_document,
)


def test_no_conclusions_before_first_signature():
    document = make_document()

    assert document.has_conclusions is False
    assert document.signatures == ()
    assert "conclusions" not in document.to_text()


def test_human_then_software_signature_share_counter():
    document = make_document()

    human = document.add_signature(**human_signature_args())
    software = document.add_software_signature("sw1", "Notary-bot", "c2ln")

    assert isinstance(human, HumanSignature)
    assert isinstance(software, SoftwareSignature)
    assert (human.sequence, software.sequence) == (1, 2)

    tree = human.to_tree()
    assert tree["person"] == {
        "@eId": "conclusion_signature_1_pers",
        "@refersTo": "sig1",
        "#": "Alice",
    }
    assert tree["role"] == {
        "@eId": "conclusion_signature_1_pers_role",
        "@refersTo": "role1",
        "#": "Signer",
    }
    assert tree["publicKey"]["@eId"] == "conclusion_signature_1_pk"
    assert tree["publicKey"]["ref"]["@eId"] == "conclusion_signature_1_pk_ref"
    assert tree["timestamp"] == {
        "@eId": "conclusion_signature_1_timestamp",
        "@date": "2024-03-02",
        "#": "2024-03-02",
    }
    assert tree["digitalSignature"] == "c2lnbmF0dXJlLWFsaWNl"

    assert software.to_tree() == {
        "object": {
            "@eId": "conclusion_signature_2_sw",
            "@refersTo": "sw1",
            "#": "Notary-bot",
        },
        "digitalSignature": "c2ln",
    }


def test_mixed_sequence_keeps_call_order_and_numbers():
    document = make_document()
    kinds = ["human", "software", "software", "human", "software"]

    for kind in kinds:
        if kind == "human":
            document.add_signature(**human_signature_args())
        else:
            document.add_software_signature("sw1", "Notary-bot", "c2ln")

    ledger = document.signatures
    assert len(ledger) == len(kinds)
    assert [r.kind for r in ledger] == kinds
    assert [r.sequence for r in ledger] == list(range(1, len(kinds) + 1))

    for record in ledger:
        text = str(record.to_tree())
        assert f"conclusion_signature_{record.sequence}_" in text


def test_identical_signatures_are_distinct_entries():
    document = make_document()

    first = document.add_software_signature("sw1", "Notary-bot", "same")
    second = document.add_software_signature("sw1", "Notary-bot", "same")

    assert first.sequence != second.sequence
    assert len(document.signatures) == 2


def test_signatures_can_precede_assembly():
    document = AKNDocument(settings=Settings())
    document.add_software_signature("sw1", "Notary-bot", "c2ln")

    assert document.to_text() is None
    assert document.signature_counter == 1


def test_date_timestamp_is_stored_as_iso_text():
    document = make_document()
    record = document.add_signature(
        **human_signature_args(timestamp=date(2024, 3, 2))
    )

    assert record.timestamp == "2024-03-02"


def test_rejected_signature_leaves_ledger_and_counter_unchanged():
    document = make_document()
    document.add_software_signature("sw1", "Notary-bot", "c2ln")

    with pytest.raises(SignatureError):
        document.add_signature(**human_signature_args(signer_name=None))

    with pytest.raises(SignatureError):
        document.append_signature({"kind": "robot", "signer_ref": "x"})

    assert len(document.signatures) == 1
    assert document.signature_counter == 1

    nxt = document.add_software_signature("sw2", "Other-bot", "c2ln")
    assert nxt.sequence == 2
