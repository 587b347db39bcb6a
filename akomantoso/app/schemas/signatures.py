"""
Signature ledger records.

A conclusions ledger holds an ordered sequence of signature records.
Records are a tagged union discriminated by ``kind``:

- ``human``: a person signing in a role, with public key and timestamp
- ``software``: a software agent signing on its own behalf

Both variants consume one shared sequence number per document, from
which every structural identifier of the record is derived.

Signature values are opaque strings computed by the caller over the
payload serialization. No cryptography happens here.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import (
    AbstractSet,
    Annotated,
    Any,
    Dict,
    Literal,
    Mapping,
    Optional,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, field_validator

from akomantoso.app.document.identifiers import (
    human_signature_identifiers,
    signature_sequence_from_id,
    software_signature_identifiers,
)


class SignatureError(ValueError):
    """Raised when a signature record cannot be built or read."""


# ----------------------------------------------------------------------
# Wire helpers
# ----------------------------------------------------------------------


def _text(node: Any) -> str:
    if node is None:
        return ""
    if isinstance(node, Mapping):
        return str(node.get("#", ""))
    return str(node)


def _attr(node: Any, name: str) -> str:
    if isinstance(node, Mapping):
        return str(node.get(f"@{name}", ""))
    return ""


# ----------------------------------------------------------------------
# Caller input (no sequence yet)
# ----------------------------------------------------------------------


class HumanSignatureInput(BaseModel):
    """Details of a human signer as supplied by the caller."""

    kind: Literal["human"] = "human"

    signer_ref: str = Field(..., description="eId reference of the signer.")
    signer_name: str = Field(..., description="Display name of the signer.")
    role_ref: str = Field(..., description="eId reference of the role.")
    role_name: str = Field(..., description="Display name of the role.")
    key_href: str = Field(..., description="Location of the public key.")
    key_material: str = Field(..., description="Textual public key material.")
    timestamp: str = Field(..., description="Signing date, ISO 8601.")
    signature_value: str = Field(..., description="Raw signature payload.")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, v: Any) -> Any:
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        return v


class SoftwareSignatureInput(BaseModel):
    """Details of a software signer as supplied by the caller."""

    kind: Literal["software"] = "software"

    signer_ref: str = Field(..., description="eId reference of the software.")
    signer_name: str = Field(..., description="Display name of the software.")
    signature_value: str = Field(..., description="Raw signature payload.")

    model_config = ConfigDict(frozen=True, extra="forbid")


SignatureInput = Annotated[
    Union[HumanSignatureInput, SoftwareSignatureInput],
    Field(discriminator="kind"),
]


# ----------------------------------------------------------------------
# Ledger records
# ----------------------------------------------------------------------


class HumanSignature(HumanSignatureInput):
    sequence: int = Field(..., ge=1)

    def to_tree(self) -> Dict[str, Any]:
        ids = human_signature_identifiers(self.sequence)
        return {
            "person": {
                "@eId": ids.person,
                "@refersTo": self.signer_ref,
                "#": self.signer_name,
            },
            "role": {
                "@eId": ids.role,
                "@refersTo": self.role_ref,
                "#": self.role_name,
            },
            "publicKey": {
                "@eId": ids.public_key,
                "ref": {
                    "@eId": ids.public_key_ref,
                    "@href": self.key_href,
                    "#": self.key_material,
                },
            },
            "timestamp": {
                "@eId": ids.timestamp,
                "@date": self.timestamp,
                "#": self.timestamp,
            },
            "digitalSignature": self.signature_value,
        }


class SoftwareSignature(SoftwareSignatureInput):
    sequence: int = Field(..., ge=1)

    def to_tree(self) -> Dict[str, Any]:
        ids = software_signature_identifiers(self.sequence)
        return {
            "object": {
                "@eId": ids.software,
                "@refersTo": self.signer_ref,
                "#": self.signer_name,
            },
            "digitalSignature": self.signature_value,
        }


SignatureRecord = Annotated[
    Union[HumanSignature, SoftwareSignature],
    Field(discriminator="kind"),
]


def record_from_input(
    details: Union[HumanSignatureInput, SoftwareSignatureInput],
    *,
    sequence: int,
) -> Union[HumanSignature, SoftwareSignature]:
    """Bind caller details to a ledger sequence number."""
    payload = details.model_dump(exclude={"sequence"})
    if isinstance(details, HumanSignatureInput):
        return HumanSignature(**payload, sequence=sequence)
    return SoftwareSignature(**payload, sequence=sequence)


def record_from_tree(
    node: Any,
    *,
    position: int,
    taken: AbstractSet[int] = frozenset(),
) -> Union[HumanSignature, SoftwareSignature]:
    """
    Read one parsed ``<signature>`` element back into a ledger record.

    The wire format carries no discriminant; the variant is recognised
    by its identifying child (``person`` or ``object``). The sequence is
    taken from the embedded eId. When the eId carries none, or one that
    is already in ``taken``, the next number past ``taken`` is used.
    """
    if not isinstance(node, Mapping):
        raise SignatureError(
            f"Signature #{position} is not a structured element"
        )

    def sequence_of(element: Any) -> int:
        found: Optional[int] = signature_sequence_from_id(
            _attr(element, "eId")
        )
        if found is None or found in taken:
            return max(taken, default=0) + 1
        return found

    try:
        if "object" in node:
            software = node["object"]
            return SoftwareSignature(
                sequence=sequence_of(software),
                signer_ref=_attr(software, "refersTo"),
                signer_name=_text(software),
                signature_value=_text(node.get("digitalSignature")),
            )

        if "person" in node:
            person = node["person"]
            role = node.get("role")
            public_key = node.get("publicKey")
            key_ref = (
                public_key.get("ref")
                if isinstance(public_key, Mapping)
                else None
            )
            timestamp = node.get("timestamp")
            return HumanSignature(
                sequence=sequence_of(person),
                signer_ref=_attr(person, "refersTo"),
                signer_name=_text(person),
                role_ref=_attr(role, "refersTo"),
                role_name=_text(role),
                key_href=_attr(key_ref, "href"),
                key_material=_text(key_ref),
                timestamp=_attr(timestamp, "date") or _text(timestamp),
                signature_value=_text(node.get("digitalSignature")),
            )
    except ValueError as exc:
        raise SignatureError(
            f"Signature #{position} is malformed: {exc}"
        ) from exc

    raise SignatureError(
        f"Signature #{position} has neither a person nor an object signer"
    )
