"""Tests for the static PIX BR Code builder."""
from __future__ import annotations

from decimal import Decimal

import pytest

from delivery.app.services.pix import build_pix_payload, crc16_ccitt, tlv

KEY = "28329618000119"
NAME = "SISTEMA DE ENTREGAS"
CITY = "SAO PAULO"

PAYLOAD_10_50 = (
    "00020126360014BR.GOV.BCB.PIX0114283296180001195204000053039865405"
    "10.505802BR5919SISTEMA DE ENTREGAS6009SAO PAULO62070503***630491D8"
)


class TestTlv:
    def test_length_is_two_decimal_digits(self) -> None:
        assert tlv("00", "01") == "000201"
        assert tlv("59", "SISTEMA DE ENTREGAS") == "5919SISTEMA DE ENTREGAS"

    def test_value_over_99_chars_rejected(self) -> None:
        with pytest.raises(ValueError):
            tlv("26", "x" * 100)


class TestCrc:
    def test_check_value(self) -> None:
        assert crc16_ccitt("123456789") == "29B1"

    def test_four_uppercase_hex_digits(self) -> None:
        assert crc16_ccitt("") == "FFFF"


class TestBuildPayload:
    def test_known_payload(self) -> None:
        assert build_pix_payload(KEY, NAME, CITY, Decimal("10.50")) == PAYLOAD_10_50

    @pytest.mark.parametrize(
        ("amount", "amount_field", "crc"),
        [
            (Decimal("22"), "540522.00", "BEB8"),
            ("0.01", "54040.01", "1CE9"),
        ],
    )
    def test_amount_formatting(self, amount, amount_field: str, crc: str) -> None:
        payload = build_pix_payload(KEY, NAME, CITY, amount)
        assert amount_field + "5802BR" in payload
        assert payload.endswith("6304" + crc)

    def test_crc_covers_everything_before_it(self) -> None:
        payload = build_pix_payload(KEY, NAME, CITY, Decimal("10.50"))
        assert crc16_ccitt(payload[:-4]) == payload[-4:]

    def test_merchant_fields_truncated(self) -> None:
        payload = build_pix_payload(
            KEY, "DISTRIBUIDORA DE GAS E AGUA LTDA", "SAO JOSE DOS CAMPOS", Decimal("1")
        )
        assert "5925DISTRIBUIDORA DE GAS E AG60" in payload
        assert "6015SAO JOSE DOS CA62" in payload

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
    def test_non_positive_amount_rejected(self, amount: Decimal) -> None:
        with pytest.raises(ValueError):
            build_pix_payload(KEY, NAME, CITY, amount)

    @pytest.mark.parametrize(
        ("name", "city"),
        [
            (NAME, "SÃO PAULO"),
            ("DISTRIBUIDORA JOÃO", CITY),
        ],
    )
    def test_accented_merchant_text_rejected(self, name: str, city: str) -> None:
        with pytest.raises(ValueError, match="ASCII"):
            build_pix_payload(KEY, name, city, Decimal("10.50"))
