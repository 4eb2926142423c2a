"""Operator signing-key validation."""

import os
from typing import Mapping, Optional

import base58
from solders.keypair import Keypair

from .errors import CredentialError
from .models import Credential

PRIVATE_KEY_ENV = "WALLET_PRIVATE_KEY"
PUBLIC_KEY_ENV = "WALLET_PUBLIC_KEY"
SECRET_KEY_LENGTH = 64
PUBLIC_KEY_STRING_LENGTH = 88


def resolve_credential(secret: Optional[str], public_key: Optional[str] = None) -> Credential:
    """Decode a base-58 secret into a keypair.

    The companion public key string is only length-checked, and that check
    happens before any decoding is attempted.
    """
    if not secret or not secret.strip():
        raise CredentialError(f"{PRIVATE_KEY_ENV} is not set")
    if public_key and len(public_key) != PUBLIC_KEY_STRING_LENGTH:
        raise CredentialError(
            f"{PUBLIC_KEY_ENV} must be {PUBLIC_KEY_STRING_LENGTH} characters, got {len(public_key)}"
        )

    try:
        raw = base58.b58decode(secret.strip())
    except ValueError:
        raise CredentialError(f"{PRIVATE_KEY_ENV} is not valid base-58") from None

    if len(raw) != SECRET_KEY_LENGTH:
        raise CredentialError(
            f"{PRIVATE_KEY_ENV} decodes to {len(raw)} bytes, expected {SECRET_KEY_LENGTH}"
        )

    try:
        keypair = Keypair.from_bytes(raw)
    except (TypeError, ValueError) as exc:
        raise CredentialError(f"{PRIVATE_KEY_ENV} is not a valid keypair") from exc
    return Credential(keypair=keypair, secret=bytes(raw))


def credential_from_env(environ: Optional[Mapping[str, str]] = None) -> Credential:
    env = os.environ if environ is None else environ
    return resolve_credential(env.get(PRIVATE_KEY_ENV), env.get(PUBLIC_KEY_ENV))
