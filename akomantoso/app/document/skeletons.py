"""
Canonical Akoma Ntoso skeletons.

The skeletons are versioned reference data. They define the fixed shape
of a document before any caller content is merged into it:

- the document skeleton (meta, preface, mainBody)
- the conclusions skeleton (empty signature ledger)

Trees use the wire object convention: ``@`` keys are attributes,
``#`` is element text, lists are repeated sibling elements.

IMPORTANT:
- The module level constants are read-only.
- Callers MUST obtain working copies via the accessor functions.
"""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Any, Dict, Mapping

SKELETON_VERSION = "1.0"

AKN_NAMESPACE = "http://docs.oasis-open.org/legaldocml/ns/akn/3.0"


def _frbr_leaf() -> Dict[str, Any]:
    return {"@value": ""}


_DOCUMENT_SKELETON: Mapping[str, Any] = MappingProxyType(
    {
        "akomaNtoso": {
            "@xmlns": AKN_NAMESPACE,
            "doc": {
                "@name": "",
                "meta": {
                    "identification": {
                        "@source": "#source",
                        "FRBRWork": {
                            "FRBRthis": _frbr_leaf(),
                            "FRBRuri": _frbr_leaf(),
                            "FRBRdate": {"@date": "", "@name": ""},
                            "FRBRauthor": {"@href": ""},
                            "FRBRcountry": _frbr_leaf(),
                        },
                        "FRBRExpression": {
                            "FRBRthis": _frbr_leaf(),
                            "FRBRuri": _frbr_leaf(),
                            "FRBRdate": {"@date": "", "@name": ""},
                            "FRBRauthor": {"@href": ""},
                            "FRBRlanguage": {"@language": ""},
                        },
                        "FRBRManifestation": {
                            "FRBRthis": _frbr_leaf(),
                            "FRBRuri": _frbr_leaf(),
                            "FRBRdate": {"@date": "", "@name": ""},
                            "FRBRauthor": {"@href": ""},
                        },
                    },
                    "references": {
                        "@source": "#source",
                    },
                },
                "preface": {
                    "longTitle": {
                        "p": "",
                    },
                },
                "mainBody": {},
            },
        },
    }
)

_CONCLUSIONS_SKELETON: Mapping[str, Any] = MappingProxyType(
    {
        "conclusions": {
            "signature": [],
        },
    }
)


def document_skeleton() -> Dict[str, Any]:
    """Return a private, mutable copy of the document skeleton."""
    return copy.deepcopy(dict(_DOCUMENT_SKELETON))


def conclusions_skeleton() -> Dict[str, Any]:
    """Return a private, mutable copy of the conclusions section."""
    return copy.deepcopy(dict(_CONCLUSIONS_SKELETON))["conclusions"]
