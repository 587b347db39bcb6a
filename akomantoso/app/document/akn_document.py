"""
Akoma Ntoso document wrapper.

An ``AKNDocument`` owns one metadata/body tree, one lazily created
conclusions ledger and one shared signature counter. It can:

- assemble a new tree from construction input
- append human and software signatures to the ledger
- serialize with conclusions (full) or without (signature payload)
- be rebuilt from serialized text

Single writer only. Instances are not safe for concurrent mutation.
"""

from __future__ import annotations

import copy
import hashlib
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from akomantoso.app.config import Settings, get_settings
from akomantoso.app.document.assembler import assemble_document
from akomantoso.app.document.conclusions import Conclusions
from akomantoso.app.document.identifiers import SignatureCounter
from akomantoso.app.schemas.document_input import DocumentElements
from akomantoso.app.schemas.signatures import (
    HumanSignature,
    HumanSignatureInput,
    SignatureError,
    SignatureInput,
    SignatureRecord,
    SoftwareSignature,
    SoftwareSignatureInput,
    record_from_input,
)
from akomantoso.app.wire.engine import (
    LxmlWireEngine,
    SerializeOptions,
    WireFormatEngine,
    WireFormatError,
)

logger = logging.getLogger(__name__)

_SIGNATURE_INPUT = TypeAdapter(SignatureInput)


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    if value is None or value == "":
        return []
    return [value]


def _normalize_parsed_doc(doc: Dict[str, Any]) -> None:
    """
    Restore list shape for elements that repeat by schema.

    The wire engine cannot tell a single repeated element from a unique
    one; assembled trees always hold lists for these.
    """
    main_body = doc.get("mainBody")
    if not isinstance(main_body, dict):
        main_body = {}
        doc["mainBody"] = main_body
    main_body["tblock"] = _as_list(main_body.get("tblock"))

    # An empty heading is written as <heading eId="..."/>.
    for block in main_body["tblock"]:
        heading = block.get("heading") if isinstance(block, dict) else None
        if isinstance(heading, dict):
            heading.setdefault("#", "")

    meta = doc.get("meta")
    references = meta.get("references") if isinstance(meta, dict) else None
    if isinstance(references, dict):
        for key in list(references):
            if not key.startswith(("@", "#")):
                references[key] = _as_list(references[key])


class AKNDocument:
    """
    A single Akoma Ntoso document and its signature ledger.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[WireFormatEngine] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._engine = engine or LxmlWireEngine()

        self._tree: Optional[Dict[str, Any]] = None
        self._conclusions: Optional[Conclusions] = None
        self._signatures = SignatureCounter()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def meta_and_main(self) -> Optional[Dict[str, Any]]:
        """A copy of the metadata/body tree, or None before assembly."""
        return copy.deepcopy(self._tree)

    @property
    def has_conclusions(self) -> bool:
        return self._conclusions is not None

    @property
    def signatures(self) -> Tuple[SignatureRecord, ...]:
        if self._conclusions is None:
            return ()
        return self._conclusions.records

    @property
    def signature_counter(self) -> int:
        """Sequence number of the most recently allocated signature."""
        return self._signatures.current

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def new_document(
        self,
        elements: Union[DocumentElements, Mapping[str, Any]],
    ) -> None:
        """
        Assemble a new tree, replacing any previous one.

        The instance is left untouched if ``elements`` is malformed.

        Raises:
            DocumentAssemblyError: on malformed input.
        """
        tree = assemble_document(
            elements,
            document_name=self._settings.document_name,
        )

        if self._conclusions is not None:
            logger.warning(
                "Re-assembling a document that already holds %d signature(s)",
                len(self._conclusions),
            )

        self._tree = tree

    # ------------------------------------------------------------------
    # Signatures
    # ------------------------------------------------------------------

    def add_signature(
        self,
        signer_ref: str,
        signer_name: str,
        role_ref: str,
        role_name: str,
        key_href: str,
        key_material: str,
        timestamp: Any,
        signature_value: str,
    ) -> HumanSignature:
        """Append a human signature and return the ledger record."""
        return self.append_signature(
            {
                "kind": "human",
                "signer_ref": signer_ref,
                "signer_name": signer_name,
                "role_ref": role_ref,
                "role_name": role_name,
                "key_href": key_href,
                "key_material": key_material,
                "timestamp": timestamp,
                "signature_value": signature_value,
            }
        )

    def add_software_signature(
        self,
        signer_ref: str,
        signer_name: str,
        signature_value: str,
    ) -> SoftwareSignature:
        """Append a software signature and return the ledger record."""
        return self.append_signature(
            {
                "kind": "software",
                "signer_ref": signer_ref,
                "signer_name": signer_name,
                "signature_value": signature_value,
            }
        )

    def append_signature(
        self,
        details: Union[
            HumanSignatureInput,
            SoftwareSignatureInput,
            Mapping[str, Any],
        ],
    ) -> SignatureRecord:
        """
        Append one signature record of either kind.

        Every call appends a new record with a new sequence number, even
        for identical details. Details are validated before the counter
        moves, so a rejected signature leaves the ledger unchanged.

        Raises:
            SignatureError: if the details are malformed.
        """
        if not isinstance(details, (HumanSignatureInput, SoftwareSignatureInput)):
            try:
                details = _SIGNATURE_INPUT.validate_python(details)
            except ValidationError as exc:
                raise SignatureError(
                    f"Malformed signature details: {exc}"
                ) from exc

        record = record_from_input(details, sequence=self._signatures.next())

        if self._conclusions is None:
            self._conclusions = Conclusions()
        self._conclusions.append(record)

        logger.info(
            "Appended %s signature #%d", record.kind, record.sequence
        )
        return record

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _options(self) -> SerializeOptions:
        return SerializeOptions(
            pretty_print=self._settings.pretty_print,
            xml_declaration=self._settings.xml_declaration,
            encoding=self._settings.encoding,
        )

    def to_text(self) -> Optional[str]:
        """
        Serialize the full document, conclusions included.

        Returns None if no tree has been assembled or parsed.
        """
        if self._tree is None:
            return None

        tree = copy.deepcopy(self._tree)
        if self._conclusions is not None and len(self._conclusions):
            tree["akomaNtoso"]["doc"]["conclusions"] = (
                self._conclusions.to_tree()
            )
        return self._engine.serialize(tree, self._options())

    def to_text_without_conclusions(self) -> Optional[str]:
        """
        Serialize the signature payload: the document minus conclusions.

        Returns None if no tree has been assembled or parsed.
        """
        if self._tree is None:
            return None

        tree = copy.deepcopy(self._tree)
        tree["akomaNtoso"]["doc"].pop("conclusions", None)
        return self._engine.serialize(tree, self._options())

    def payload_hash(self) -> Optional[str]:
        """
        Digest of the payload serialization, e.g. ``SHA-256:3b7c0e4c...``.

        The payload is hashed in the configured output encoding, exactly
        as it is written out for signing.
        """
        payload = self.to_text_without_conclusions()
        if payload is None:
            return None
        digest = hashlib.sha256(payload.encode(self._settings.encoding))
        return f"SHA-256:{digest.hexdigest()}"

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_text(
        cls,
        text: Union[str, bytes],
        *,
        settings: Optional[Settings] = None,
        engine: Optional[WireFormatEngine] = None,
    ) -> Optional["AKNDocument"]:
        """
        Rebuild a document from serialized text.

        Bytes are decoded by the encoding their XML declaration names.

        Returns None, never a partial instance, when the text is not
        well formed, is not rooted at ``akomaNtoso/doc``, or holds an
        unreadable conclusions section. Callers MUST check for None.
        """
        instance = cls(settings=settings, engine=engine)

        try:
            parsed = instance._engine.parse(text)
        except WireFormatError as exc:
            logger.warning("Rejected document text: %s", exc)
            return None

        root = parsed.get("akomaNtoso")
        doc = root.get("doc") if isinstance(root, dict) else None
        if not isinstance(doc, dict):
            logger.warning(
                "Rejected document text: root is not akomaNtoso/doc"
            )
            return None

        conclusions = doc.pop("conclusions", None)
        if conclusions:
            try:
                ledger = Conclusions.from_tree(conclusions)
            except SignatureError as exc:
                logger.warning("Rejected document conclusions: %s", exc)
                return None

            instance._conclusions = ledger
            if instance._settings.reseed_signature_counter:
                instance._signatures.reseed(
                    max(ledger.highest_sequence, len(ledger))
                )

        _normalize_parsed_doc(doc)
        instance._tree = parsed
        return instance
