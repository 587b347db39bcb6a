"""
Document endpoints.

Clients supply structured content and already-computed signature
values. Assembly, identifier allocation and serialization are
performed exclusively by this engine.

Two output modes are supported via the ?mode query parameter:

    full      metadata + body + conclusions (when signatures exist)
    payload   metadata + body only; the text signatures are computed over

Both modes return the payload digest in the X-Payload-Hash response
header so clients can sign without re-serializing.
"""

import logging
from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from akomantoso.app.config import Settings, get_settings
from akomantoso.app.document.akn_document import AKNDocument
from akomantoso.app.document.assembler import DocumentAssemblyError
from akomantoso.app.schemas.document_input import DocumentElements
from akomantoso.app.schemas.signatures import SignatureError, SignatureInput
from akomantoso.app.wire.engine import WireFormatError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])


class DocumentRequest(BaseModel):
    document: DocumentElements
    signatures: List[SignatureInput] = Field(
        default_factory=list,
        description="Signatures appended in order after assembly.",
    )


# ---------------------------------------------------------------------------
# POST /documents
# ---------------------------------------------------------------------------


@router.post(
    "",
    summary="Assemble a document and serialize it",
    response_class=Response,
    responses={
        200: {
            "content": {"application/xml": {}},
            "description": "Serialized document",
        },
        422: {"description": "Invalid document or signature input, or content that cannot be written as XML"},
    },
)
def build_document(
    request: DocumentRequest,
    mode: Literal["full", "payload"] = Query(
        default="full",
        description=(
            "'full' includes conclusions. "
            "'payload' withholds them and yields the text to sign."
        ),
    ),
    settings: Settings = Depends(get_settings),
) -> Response:
    document = AKNDocument(settings=settings)

    try:
        document.new_document(request.document)
        for signature in request.signatures:
            document.append_signature(signature)
    except (DocumentAssemblyError, SignatureError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        if mode == "payload":
            text = document.to_text_without_conclusions()
        else:
            text = document.to_text()
        payload_hash = document.payload_hash()
    except WireFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return Response(
        content=text,
        media_type="application/xml",
        headers={"X-Payload-Hash": payload_hash},
    )


# ---------------------------------------------------------------------------
# POST /documents/parse
# ---------------------------------------------------------------------------


@router.post(
    "/parse",
    summary="Parse serialized document text",
)
async def parse_document(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Parse XML text into the tree and its signature ledger.

    Returns 422 when the text is not an Akoma Ntoso document.
    """
    # Raw bytes: the XML declaration names the encoding.
    body = await request.body()
    document = AKNDocument.from_text(body, settings=settings)
    if document is None:
        raise HTTPException(
            status_code=422,
            detail="Text is not a readable Akoma Ntoso document.",
        )

    logger.info(
        "Parsed document with %d signature(s)", len(document.signatures)
    )
    return {
        "tree": document.meta_and_main,
        "signatures": [s.model_dump() for s in document.signatures],
        "payload_hash": document.payload_hash(),
    }
