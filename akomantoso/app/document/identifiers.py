"""
Structural identifier allocation.

Identifiers are human readable and follow ``<prefix>_<counter>[_<part>]``.
Counters are monotonically increasing and are never decremented.

- Body blocks: ``tblock_<n>`` (+ heading and paragraph ids)
- Signatures: ``conclusion_signature_<n>_<part>``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

BLOCK_PREFIX = "tblock"
SIGNATURE_PREFIX = "conclusion_signature"

SIGNATURE_ID_RE = re.compile(rf"^{SIGNATURE_PREFIX}_(?P<sequence>\d+)_")


@dataclass(frozen=True)
class BlockIdentifiers:
    block: str
    heading: str
    paragraph: str


@dataclass(frozen=True)
class HumanSignatureIdentifiers:
    person: str
    role: str
    public_key: str
    public_key_ref: str
    timestamp: str


@dataclass(frozen=True)
class SoftwareSignatureIdentifiers:
    software: str


def block_identifiers(number: int) -> BlockIdentifiers:
    # Heading and paragraph share the block number.
    block = f"{BLOCK_PREFIX}_{number}"
    return BlockIdentifiers(
        block=block,
        heading=f"{block}__heading",
        paragraph=f"{block}__p_{number}",
    )


def human_signature_identifiers(sequence: int) -> HumanSignatureIdentifiers:
    base = f"{SIGNATURE_PREFIX}_{sequence}"
    return HumanSignatureIdentifiers(
        person=f"{base}_pers",
        role=f"{base}_pers_role",
        public_key=f"{base}_pk",
        public_key_ref=f"{base}_pk_ref",
        timestamp=f"{base}_timestamp",
    )


def software_signature_identifiers(
    sequence: int,
) -> SoftwareSignatureIdentifiers:
    return SoftwareSignatureIdentifiers(
        software=f"{SIGNATURE_PREFIX}_{sequence}_sw",
    )


def signature_sequence_from_id(eid: str) -> Optional[int]:
    """Extract the signature sequence number embedded in an eId, if any."""
    match = SIGNATURE_ID_RE.match(eid or "")
    if match is None:
        return None
    return int(match.group("sequence"))


class BlockIdentifierSequence:
    """
    Allocates body block identifiers for one assembled tree.

    A new sequence is created for every assembly; the tree it numbers
    is replaced wholesale, so numbering restarts at 1 without collision.
    """

    def __init__(self) -> None:
        self._last = 0

    def next(self) -> BlockIdentifiers:
        self._last += 1
        return block_identifiers(self._last)


class SignatureCounter:
    """
    Shared signature sequence for one document instance.

    Human and software signatures draw from the same counter.
    """

    def __init__(self) -> None:
        self._last = 0

    @property
    def current(self) -> int:
        return self._last

    def peek(self) -> int:
        """Return the number the next signature will receive."""
        return self._last + 1

    def next(self) -> int:
        self._last += 1
        return self._last

    def reseed(self, highest: int) -> None:
        """
        Advance the counter past ``highest``.

        Reseeding never moves the counter backwards.
        """
        if highest > self._last:
            self._last = highest
