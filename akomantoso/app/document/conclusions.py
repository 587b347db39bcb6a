"""
Conclusions ledger.

Holds the ordered signature records of a document. The ledger is kept
outside the metadata/body tree so the payload serialization never sees
it; it is re-attached only for the full serialization.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Set, Tuple

from akomantoso.app.document.skeletons import conclusions_skeleton
from akomantoso.app.schemas.signatures import (
    SignatureError,
    SignatureRecord,
    record_from_tree,
)

logger = logging.getLogger(__name__)


class Conclusions:
    """
    Append-only ledger of signature records.

    Records are kept in append order. No removal, reordering or lookup
    by identifier is offered.
    """

    def __init__(self) -> None:
        self._section: Dict[str, Any] = conclusions_skeleton()
        self._records: List[SignatureRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[SignatureRecord, ...]:
        return tuple(self._records)

    @property
    def highest_sequence(self) -> int:
        return max((r.sequence for r in self._records), default=0)

    def append(self, record: SignatureRecord) -> None:
        self._records.append(record)

    def to_tree(self) -> Dict[str, Any]:
        section = dict(self._section)
        section["signature"] = [r.to_tree() for r in self._records]
        return section

    @classmethod
    def from_tree(cls, node: Any) -> "Conclusions":
        """
        Rebuild a ledger from a parsed ``<conclusions>`` section.

        Raises:
            SignatureError: if the section or any signature is unreadable.
        """
        if not isinstance(node, Mapping):
            raise SignatureError("Conclusions section holds no signatures")

        signatures = node.get("signature", [])
        if isinstance(signatures, (Mapping, str)):
            signatures = [signatures]
        if not signatures:
            raise SignatureError("Conclusions section holds no signatures")

        unknown = sorted(k for k in node if k != "signature")
        if unknown:
            logger.debug(
                "Ignoring unsupported conclusions children: %s", unknown
            )

        ledger = cls()
        taken: Set[int] = set()
        for position, signature in enumerate(signatures, start=1):
            record = record_from_tree(
                signature, position=position, taken=taken
            )
            taken.add(record.sequence)
            ledger.append(record)
        return ledger
