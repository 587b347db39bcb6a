"""
Akoma Ntoso document assembler.

Turns validated construction input into a populated metadata/body tree
by combining:

- the canonical document skeleton
- the two-level metadata merge
- body block identifier allocation

This module:
- validates raw input (fail fast)
- returns a fresh tree on every call

It does NOT:
- hold document state
- touch the conclusions ledger
- serialize anything
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Union

from pydantic import ValidationError

from akomantoso.app.document.identifiers import BlockIdentifierSequence
from akomantoso.app.document.merge import merge
from akomantoso.app.document.skeletons import document_skeleton
from akomantoso.app.schemas.document_input import DocumentElements

logger = logging.getLogger(__name__)

IDENTIFICATION_GROUPS = ("FRBRWork", "FRBRExpression", "FRBRManifestation")


class DocumentAssemblyError(ValueError):
    """Raised when construction input is malformed."""


def coerce_elements(
    elements: Union[DocumentElements, Mapping[str, Any]],
) -> DocumentElements:
    """Validate raw construction input into :class:`DocumentElements`."""
    if isinstance(elements, DocumentElements):
        return elements
    try:
        return DocumentElements.model_validate(elements)
    except ValidationError as exc:
        raise DocumentAssemblyError(
            f"Malformed document input: {exc}"
        ) from exc


def assemble_document(
    elements: Union[DocumentElements, Mapping[str, Any]],
    *,
    document_name: str = "document",
) -> Dict[str, Any]:
    """
    Assemble a metadata/body tree from construction input.

    Args:
        elements: Validated input or a plain mapping of the same shape.
        document_name: Value written to ``doc/@name``.

    Returns:
        A new tree rooted at ``akomaNtoso``. Conclusions are never part
        of the returned tree.

    Raises:
        DocumentAssemblyError: if ``elements`` is malformed.
    """
    elements = coerce_elements(elements)

    tree = document_skeleton()
    doc = tree["akomaNtoso"]["doc"]
    doc["@name"] = document_name

    # ------------------------------------------------------------------
    # meta / identification
    # ------------------------------------------------------------------
    identification = doc["meta"]["identification"]
    for group in IDENTIFICATION_GROUPS:
        supplied = copy.deepcopy(getattr(elements.identification, group))
        identification[group] = merge(identification[group], supplied)

    # ------------------------------------------------------------------
    # meta / references (grouped by type, input order kept)
    # ------------------------------------------------------------------
    references = doc["meta"]["references"]
    for reference in elements.references:
        references.setdefault(reference.type, []).append(reference.to_tree())

    # ------------------------------------------------------------------
    # preface
    # ------------------------------------------------------------------
    doc["preface"]["longTitle"]["p"] = elements.prefaceTitle

    # ------------------------------------------------------------------
    # mainBody
    # ------------------------------------------------------------------
    blocks: List[Dict[str, Any]] = []
    sequence = BlockIdentifierSequence()
    for block in elements.mainBody:
        ids = sequence.next()
        # Generated ids win; empty text is the same as no text on the wire.
        paragraph = {
            k: v
            for k, v in copy.deepcopy(block.p).items()
            if k != "@eId" and not (k == "#" and v == "")
        }
        blocks.append(
            {
                "@eId": ids.block,
                "heading": {
                    "@eId": ids.heading,
                    "#": block.blockTitle,
                },
                "p": {"@eId": ids.paragraph, **paragraph},
            }
        )
    doc["mainBody"]["tblock"] = blocks

    logger.info(
        "Assembled document '%s': %d block(s), %d reference(s)",
        document_name,
        len(blocks),
        len(elements.references),
    )
    return tree
