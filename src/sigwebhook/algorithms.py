"""Supported JWA signature algorithms.

Identifiers are split into two disjoint families:

- Symmetric (HMAC): the receiver holds the same secret the sender signs with.
- Asymmetric (RSA PKCS#1 v1.5, RSA-PSS, ECDSA): the receiver holds a public key.

Usage:
    from sigwebhook.algorithms import AlgorithmFamily, family_of

    if family_of("RS256") is AlgorithmFamily.ASYMMETRIC:
        ...
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

SymmetricAlgorithm = Literal["HS256", "HS384", "HS512"]

AsymmetricAlgorithm = Literal[
    "RS256",
    "RS384",
    "RS512",
    "PS256",
    "PS384",
    "PS512",
    "ES256",
    "ES384",
    "ES512",
]

Algorithm = SymmetricAlgorithm | AsymmetricAlgorithm

SYMMETRIC_ALGORITHMS: frozenset[str] = frozenset({"HS256", "HS384", "HS512"})

ASYMMETRIC_ALGORITHMS: frozenset[str] = frozenset(
    {
        "RS256",
        "RS384",
        "RS512",
        "PS256",
        "PS384",
        "PS512",
        "ES256",
        "ES384",
        "ES512",
    }
)

SUPPORTED_ALGORITHMS: frozenset[str] = SYMMETRIC_ALGORITHMS | ASYMMETRIC_ALGORITHMS


class AlgorithmFamily(Enum):
    """Family an algorithm identifier belongs to."""

    SYMMETRIC = "symmetric"
    ASYMMETRIC = "asymmetric"
    UNKNOWN = "unknown"


def family_of(algorithm: str) -> AlgorithmFamily:
    """Classify an algorithm identifier.

    Lookup is case-sensitive, matching the JWA names.

    Args:
        algorithm: Identifier such as ``"HS256"``.

    Returns:
        The family, or ``AlgorithmFamily.UNKNOWN`` for anything unsupported.
    """
    if algorithm in SYMMETRIC_ALGORITHMS:
        return AlgorithmFamily.SYMMETRIC
    if algorithm in ASYMMETRIC_ALGORITHMS:
        return AlgorithmFamily.ASYMMETRIC
    return AlgorithmFamily.UNKNOWN


def is_symmetric(algorithm: str) -> bool:
    return algorithm in SYMMETRIC_ALGORITHMS


def is_asymmetric(algorithm: str) -> bool:
    return algorithm in ASYMMETRIC_ALGORITHMS
