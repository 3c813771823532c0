"""secp256k1 PointEncoder backed by the `cryptography` library.

Points are EllipticCurvePublicKey objects. The point at infinity (a
balance congruent to 0 modulo the group order) is represented by None
and encoded as the SEC1 single zero byte.
"""

from __future__ import annotations

from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

CurvePoint = Optional[ec.EllipticCurvePublicKey]

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
INFINITY_KEY = "00"


class Secp256k1Encoder:
    # Keys are lowercase hex of the SEC1 compressed encoding
    def __init__(self) -> None:
        self._curve = ec.SECP256K1()

    def encode(self, point: CurvePoint) -> str:
        if point is None:
            return INFINITY_KEY
        raw = point.public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.CompressedPoint,
        )
        return raw.hex()

    def decode(self, text: str) -> CurvePoint:
        """Parse a hex SEC1 point (compressed or uncompressed).

        Raises ValueError for bad hex or bytes that are not a point on
        the curve.
        """
        s = (text or "").strip().lower()
        if s.startswith("0x"):
            s = s[2:]
        if not s:
            raise ValueError("Point encoding is empty")

        raw = bytes.fromhex(s)
        if raw == b"\x00":
            return None
        return ec.EllipticCurvePublicKey.from_encoded_point(self._curve, raw)

    def point_for_balance(self, balance: int) -> CurvePoint:
        # g^b: derive the public key for scalar b (mod n)
        scalar = int(balance) % SECP256K1_ORDER
        if scalar == 0:
            return None
        return ec.derive_private_key(scalar, self._curve).public_key()
