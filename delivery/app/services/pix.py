"""Static PIX BR Code (EMV merchant-presented payload) generation."""

from __future__ import annotations

from decimal import Decimal

from delivery.app.core.database import money

PIX_GUI = "BR.GOV.BCB.PIX"
MERCHANT_CATEGORY_CODE = "0000"
CURRENCY_BRL = "986"
COUNTRY_CODE = "BR"
CRC_TAG = "6304"

MAX_NAME_LENGTH = 25
MAX_CITY_LENGTH = 15


def tlv(tag: str, value: str) -> str:
    """Encode one field: 2-digit id, 2-digit decimal length, value."""
    length = len(value)
    if length > 99:
        raise ValueError(f"TLV value too long for tag {tag}: {length} chars (max 99)")
    return f"{tag}{length:02d}{value}"


def crc16_ccitt(payload: str) -> str:
    """CRC-16/CCITT-FALSE (poly 0x1021, init 0xFFFF), 4 uppercase hex digits."""
    crc = 0xFFFF
    for byte in payload.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return f"{crc:04X}"


def build_pix_payload(
    key: str,
    name: str,
    city: str,
    amount: Decimal | int | str,
    reference: str = "***",
) -> str:
    """Build the copy-and-paste BR Code for a fixed amount.

    Field order: payload format (00), merchant account (26: GUI + key),
    category (52), currency (53), amount (54), country (58), name (59),
    city (60), additional data (62: reference label 05), CRC (63).
    Lengths count characters and the CRC runs over bytes, so every text
    field must be ASCII.
    """
    amt = money(amount)
    if amt <= 0:
        raise ValueError("PIX amount must be greater than zero")
    for label, text in (("key", key), ("name", name), ("city", city), ("reference", reference)):
        if not text.isascii():
            raise ValueError(f"PIX merchant {label} must be plain ASCII: {text!r}")

    merchant_info = tlv("00", PIX_GUI) + tlv("01", key)
    payload = "".join([
        tlv("00", "01"),
        tlv("26", merchant_info),
        tlv("52", MERCHANT_CATEGORY_CODE),
        tlv("53", CURRENCY_BRL),
        tlv("54", f"{amt:.2f}"),
        tlv("58", COUNTRY_CODE),
        tlv("59", name[:MAX_NAME_LENGTH]),
        tlv("60", city[:MAX_CITY_LENGTH]),
        tlv("62", tlv("05", reference)),
        CRC_TAG,
    ])
    return payload + crc16_ccitt(payload)
