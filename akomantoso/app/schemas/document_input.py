"""
Construction input for Akoma Ntoso documents.

Callers supply identification facts, typed references, a preface title
and ordered body blocks. Structural identifiers are NOT part of the
input; they are generated during assembly.
"""

import re
from typing import Any, Dict, List, Mapping, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Reference group names and wire object keys become XML names.
ELEMENT_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_.\-]*$"

_ELEMENT_NAME_RE = re.compile(ELEMENT_NAME_PATTERN)

# A field is either element text or a structured value.
IdentificationGroup = Dict[str, Union[str, Dict[str, Any]]]


def check_wire_keys(value: Any, path: str = "") -> Any:
    """
    Reject wire object keys that cannot be written as XML.

    A key is ``#`` (element text), ``@`` followed by an attribute name,
    or an element name. Nested mappings and lists are checked too.
    """
    if isinstance(value, Mapping):
        for key, child in value.items():
            name = key[1:] if isinstance(key, str) and key.startswith("@") else key
            if key != "#" and not (
                isinstance(name, str) and _ELEMENT_NAME_RE.fullmatch(name)
            ):
                raise ValueError(f"'{path}{key}' is not a valid XML name")
            check_wire_keys(child, f"{path}{key}/")
    elif isinstance(value, list):
        for item in value:
            check_wire_keys(item, path)
    return value


class Identification(BaseModel):
    """
    FRBR identification triple.

    Each sub-group maps a field name (e.g. ``FRBRthis``) to either plain
    element text or a structured value (attributes and/or children)
    merged into the skeleton.
    """

    FRBRWork: IdentificationGroup = Field(
        ...,
        description="Work-level identity facts.",
    )

    FRBRExpression: IdentificationGroup = Field(
        ...,
        description="Expression-level identity facts.",
    )

    FRBRManifestation: IdentificationGroup = Field(
        ...,
        description="Manifestation-level identity facts.",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("FRBRWork", "FRBRExpression", "FRBRManifestation")
    @classmethod
    def validate_keys(cls, v: IdentificationGroup) -> IdentificationGroup:
        return check_wire_keys(v)


class Reference(BaseModel):
    """
    A typed, labeled link from the metadata to an external concept.

    Both ``eId`` and the wire spelling ``@eId`` are accepted (likewise for
    ``href`` and ``showAs``).
    """

    type: str = Field(
        ...,
        description="Reference group tag, e.g. 'TLCPerson' or 'TLCRole'.",
        pattern=ELEMENT_NAME_PATTERN,
    )

    eId: str = Field(
        ...,
        validation_alias=AliasChoices("eId", "@eId"),
        min_length=1,
    )

    href: str = Field(
        ...,
        validation_alias=AliasChoices("href", "@href"),
    )

    showAs: str = Field(
        ...,
        validation_alias=AliasChoices("showAs", "@showAs"),
    )

    def to_tree(self) -> Dict[str, Any]:
        return {
            "@eId": self.eId,
            "@href": self.href,
            "@showAs": self.showAs,
        }


class MainBodyBlock(BaseModel):
    """One titled block of the document body."""

    blockTitle: str = Field(
        ...,
        description="Heading text of the block.",
    )

    p: Dict[str, Any] = Field(
        ...,
        description=(
            "Structured paragraph content in the wire object convention "
            "(e.g. {'#': 'text'} or {'text': 'Hello'})."
        ),
    )

    @field_validator("p")
    @classmethod
    def validate_keys(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        return check_wire_keys(v)


class DocumentElements(BaseModel):
    """Complete construction input for one document."""

    identification: Identification

    references: List[Reference] = Field(
        default_factory=list,
        description="Ordered references, grouped by type on assembly.",
    )

    prefaceTitle: str = Field(
        ...,
        description="Plain text written verbatim into the preface title.",
    )

    mainBody: List[MainBodyBlock] = Field(
        ...,
        description="Ordered body blocks.",
    )
