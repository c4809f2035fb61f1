# services/slip_parser.py
"""
Field extraction from bank transfer slips.

The recognition engines (OCR, QR decoding) run elsewhere; these functions
only turn the text or QR payload they return into payment fields. All of
them are pure.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

_NUMBER = r"([0-9]{1,3}(?:,?[0-9]{3})*(?:\.[0-9]{1,2})?)"

AMOUNT_PATTERNS = [
     re.compile(r"(?:จำนวนเงิน|จ่าย|ยอดเงิน|โอน)[:\s]+" + _NUMBER, re.IGNORECASE),
     re.compile(r"(?:Amount|Total|Pay)[:\s]+" + _NUMBER, re.IGNORECASE),
     re.compile(r"THB[:\s]+" + _NUMBER, re.IGNORECASE),
     re.compile(r"฿[:\s]*" + _NUMBER),
]
FEE_PATTERN = re.compile(r"(?:ค่าธรรมเนียม|Fee)[:\s]+([0-9]+(?:\.[0-9]{1,2})?)", re.IGNORECASE)
DATE_PATTERN = re.compile(r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})")
TIME_PATTERN = re.compile(r"(\d{1,2}:\d{2}(?::\d{2})?(?:\s?[AP]M)?)", re.IGNORECASE)
ACCOUNT_PATTERN = re.compile(r"\b(\d{3}-?\d-?\d{5}-?\d)\b")
REFERENCE_PATTERN = re.compile(r"(?:Ref|อ้างอิง)[:\s]+([A-Z0-9]{1,100})", re.IGNORECASE)
TRANSACTION_PATTERN = re.compile(r"(?:Transaction|รายการ)[:\s]+([A-Z0-9]{1,100})", re.IGNORECASE)


def _to_decimal(value: str) -> Optional[Decimal]:
     try:
          return Decimal(value.replace(",", ""))
     except InvalidOperation:
          return None


def extract_slip_fields(text: str) -> dict:
     """
     Parse OCR text from a Thai bank slip.

     Returns only the fields that were found: amount, fee, date, time,
     from_account, to_account, reference, transaction_no.
     """
     data = {}
     if not text:
          return data

     for pattern in AMOUNT_PATTERNS:
          match = pattern.search(text)
          if match:
               data["amount"] = _to_decimal(match.group(1))
               break

     match = FEE_PATTERN.search(text)
     if match:
          data["fee"] = _to_decimal(match.group(1))

     match = DATE_PATTERN.search(text)
     if match:
          data["date"] = match.group(1)

     match = TIME_PATTERN.search(text)
     if match:
          data["time"] = match.group(1)

     accounts = ACCOUNT_PATTERN.findall(text)
     if len(accounts) >= 2:
          data["from_account"] = accounts[0]
          data["to_account"] = accounts[1]
     elif len(accounts) == 1:
          data["to_account"] = accounts[0]

     match = REFERENCE_PATTERN.search(text)
     if match:
          data["reference"] = match.group(1)

     match = TRANSACTION_PATTERN.search(text)
     if match:
          data["transaction_no"] = match.group(1)

     return {key: value for key, value in data.items() if value is not None}


def _parse_tlv(payload: str) -> dict:
     """EMV tag(2) length(2) value objects. Stops at the first malformed entry."""
     fields = {}
     pos = 0
     while pos + 4 <= len(payload):
          tag = payload[pos:pos + 2]
          length = payload[pos + 2:pos + 4]
          if not length.isdigit():
               break
          end = pos + 4 + int(length)
          if end > len(payload):
               break
          fields[tag] = payload[pos + 4:end]
          pos = end
     return fields


def parse_promptpay_qr(payload: str) -> dict:
     """
     Extract merchant_id (tag 30), amount (tag 54) and ref1/ref2 (tags 62.01
     and 62.02) from a PromptPay / Thai QR payment payload.
     """
     data = {}
     if not payload:
          return data
     fields = _parse_tlv(payload.strip())

     merchant = fields.get("30")
     if merchant:
          # Bill payment merchant info carries the biller id in sub-tag 01
          sub = _parse_tlv(merchant)
          data["merchant_id"] = sub.get("01") or merchant

     amount = fields.get("54")
     if amount:
          parsed = _to_decimal(amount)
          if parsed is not None:
               data["amount"] = parsed

     additional = fields.get("62")
     if additional:
          sub = _parse_tlv(additional)
          if sub.get("01"):
               data["ref1"] = sub["01"]
          if sub.get("02"):
               data["ref2"] = sub["02"]

     return data


def _present(value) -> bool:
     return value is not None and value != ""


def merge_extraction(primary: Optional[dict], fallback: Optional[dict]) -> dict:
     """Field-level merge: a present primary value wins, otherwise the fallback's."""
     primary = primary or {}
     fallback = fallback or {}
     merged = {}
     for key in set(primary) | set(fallback):
          if _present(primary.get(key)):
               merged[key] = primary[key]
          elif _present(fallback.get(key)):
               merged[key] = fallback[key]
     return merged
