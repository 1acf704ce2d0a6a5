# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the vault (encryption) endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------


class EncryptRequest(BaseModel):
    plaintext: str = Field(min_length=1)


class DecryptRequest(BaseModel):
    ciphertext: str


class HashRequest(BaseModel):
    text: str


class RecordRequest(BaseModel):
    # email / phone / personalInfo are sealed; any other key passes through
    record: Dict[str, Any]


# -- Responses -------------------------------------------------------------
# Envelopes are "iv:authTag:ciphertext", all hex.


class EncryptResponse(BaseModel):
    ciphertext: str


class DecryptResponse(BaseModel):
    plaintext: str


class HashResponse(BaseModel):
    hash: str


class TokenResponse(BaseModel):
    token: str


class RecordResponse(BaseModel):
    record: Dict[str, Any]


class SelfTestCase(BaseModel):
    test: str
    input: str
    success: bool
    error: Optional[str] = None


class SelfTestSummary(BaseModel):
    total_tests: int
    passed_tests: int
    failed_tests: int
    success_rate: str


class SelfTestResponse(BaseModel):
    success: bool
    summary: SelfTestSummary
    results: List[SelfTestCase]
