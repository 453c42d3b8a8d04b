"""Shared fixtures: sample webhook payload, keys and signing helpers."""

from __future__ import annotations

import base64
import hashlib
import hmac
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

PAYLOAD = (
    '{"detectionTimestamp":1668171698000,"event":{"mmr":{"found":true,"make":"Ford",'
    '"makeConfidence":100,"model":"Focus","modelConfidence":100,"category":"CAR",'
    '"categoryConfidence":100,"color":"#000","colorConfidence":100,"heading":"front",'
    '"headingConfidence":100},"plate":{"found":true,"unicodeText":"JST052","country":"HUN",'
    '"state":null,"confidence":100}},"attachments":[{"mimeType":"image/jpeg","data":"sampledata"}]}'
)

HMAC_SECRET = "TEST HMAC SECRET"
HS256_VALID_SIGNATURE = "QoduozBbK9CzEvzK0OuioqKjkbOqzV6EaQJpBF6xbKo"
INVALID_SIGNATURE = "I'm invalid!"

_HMAC_HASHES = {
    "HS256": hashlib.sha256,
    "HS384": hashlib.sha384,
    "HS512": hashlib.sha512,
}

_SHA = {
    "256": hashes.SHA256,
    "384": hashes.SHA384,
    "512": hashes.SHA512,
}


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def sign_hmac(payload: str | bytes, secret: str, algorithm: str = "HS256") -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), payload, _HMAC_HASHES[algorithm]).digest()
    return b64url(digest)


def sign_rsa(payload: str | bytes, private_key: rsa.RSAPrivateKey, algorithm: str = "RS256") -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    hash_cls = _SHA[algorithm[2:]]
    if algorithm.startswith("PS"):
        pad = padding.PSS(mgf=padding.MGF1(hash_cls()), salt_length=hash_cls.digest_size)
    else:
        pad = padding.PKCS1v15()
    return b64url(private_key.sign(payload, pad, hash_cls()))


def sign_ec(
    payload: str | bytes,
    private_key: ec.EllipticCurvePrivateKey,
    algorithm: str = "ES256",
) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    hash_cls = _SHA[algorithm[2:]]
    der = private_key.sign(payload, ec.ECDSA(hash_cls()))
    r, s = decode_dss_signature(der)
    size = (private_key.curve.key_size + 7) // 8
    return b64url(r.to_bytes(size, "big") + s.to_bytes(size, "big"))


def write_public_key(path: Path, private_key) -> Path:
    path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return path


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_public_key_path(tmp_path: Path, rsa_private_key: rsa.RSAPrivateKey) -> Path:
    return write_public_key(tmp_path / "RS256.public.pem", rsa_private_key)


@pytest.fixture(scope="session")
def ec_private_keys() -> dict[str, ec.EllipticCurvePrivateKey]:
    return {
        "ES256": ec.generate_private_key(ec.SECP256R1()),
        "ES384": ec.generate_private_key(ec.SECP384R1()),
        "ES512": ec.generate_private_key(ec.SECP521R1()),
    }
