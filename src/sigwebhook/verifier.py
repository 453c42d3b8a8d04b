"""Webhook signature verification.

Signatures are JWS-style: the raw output of a JWA algorithm (RFC 7518),
base64url encoded with optional padding. The cryptographic check itself is
delegated to the JWA algorithm objects registered by authlib, so HMAC
comparison is constant-time and RSA/ECDSA checks run through cryptography.

Usage:
    from sigwebhook.config import SymmetricSignatureConfig
    from sigwebhook.verifier import verify_signature

    config = SymmetricSignatureConfig(algorithm="HS256", secret="shared")
    if verify_signature(request_body, headers["x-signature"], config):
        ...
"""

from __future__ import annotations

import structlog
from authlib.common.encoding import to_bytes, urlsafe_b64decode, urlsafe_b64encode
from authlib.jose import JsonWebSignature, JWSAlgorithm
from cryptography.exceptions import UnsupportedAlgorithm

from sigwebhook.algorithms import SUPPORTED_ALGORITHMS
from sigwebhook.config import ResolvedConfig, SignatureConfig, resolve_config
from sigwebhook.errors import VerificationError

logger = structlog.get_logger()


def get_algorithm(algorithm: str) -> JWSAlgorithm:
    """Look up the JWA implementation for a supported identifier.

    Raises:
        VerificationError: If the identifier is not supported.
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise VerificationError(f"Unsupported signature algorithm '{algorithm}'")
    return JsonWebSignature.ALGORITHMS_REGISTRY[algorithm]


def decode_signature(signature: str) -> bytes | None:
    """Decode a base64url signature, tolerating missing padding.

    Only the canonical encoding is accepted: text with stray characters or
    non-zero unused bits in its last character does not decode.

    Returns:
        The raw signature bytes, or None if the text is not canonical base64url.
    """
    text = to_bytes(signature).rstrip(b"=")
    try:
        sig = urlsafe_b64decode(text)
    except ValueError:
        return None
    if urlsafe_b64encode(sig) != text:
        return None
    return sig


def verify(payload: bytes | str, signature: str, config: ResolvedConfig) -> bool:
    """Verify a signature over a payload.

    An invalid signature, including one that is not even valid base64url,
    yields ``False``. Only unusable verification material raises.

    Args:
        payload: The raw request body. Text is encoded as UTF-8.
        signature: Contents of the signature header.
        config: Resolved configuration.

    Returns:
        True if the signature is valid.

    Raises:
        VerificationError: If the secret or public key cannot be used with
            the configured algorithm.
    """
    alg = get_algorithm(config.algorithm)

    try:
        key = alg.prepare_key(config.verification_material)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise VerificationError(
            f"Verification material is not usable with {config.algorithm}: {e}"
        ) from e

    sig = decode_signature(signature)
    if sig is None:
        logger.debug("Signature is not valid base64url", algorithm=config.algorithm)
        return False

    try:
        return bool(alg.verify(to_bytes(payload), sig, key))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise VerificationError(
            f"Signature check failed for {config.algorithm}: {e}"
        ) from e


def verify_signature(
    payload: bytes | str,
    signature: str,
    config: SignatureConfig,
) -> bool:
    """Resolve ``config`` and verify ``signature`` in one call.

    Intended for frameworks other than aiohttp. The config is resolved on
    every call; use :func:`verify` with a :class:`ResolvedConfig` to avoid
    re-reading key files.

    Raises:
        ConfigError: If the config is invalid.
        VerificationError: If the material is unusable.
    """
    return verify(payload, signature, resolve_config(config))
