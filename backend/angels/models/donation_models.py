"""Donation checkout request/response schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field, validator

PRESET_AMOUNTS = [25, 50, 100, 250, 500]

DONATION_TYPES = {
    "general": "General",
    "fun_grant": "Fun Grants",
    "angel_aid": "Angel Aid",
    "angel_hug": "Angel Hugs",
    "scholarship": "Scholarship Fund",
    "hugs_ukraine": "Hugs for Ukraine",
}

MAILING_ADDRESS = {
    "name": "Kelly's Angels Inc.",
    "street": "P.O. Box 2034",
    "city": "Wilton",
    "state": "NY",
    "zip_code": "12831",
}


class CheckoutRequest(BaseModel):
    """Body posted by the donate page; keys match the site's camelCase JSON."""

    amount: Optional[float] = None
    donationType: Optional[str] = Field(None, max_length=50)
    isRecurring: bool = False

    @validator("donationType", pre=True)
    def blank_type_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CheckoutResponse(BaseModel):
    sessionId: str


class DonationTypeOption(BaseModel):
    value: str
    label: str


class DonationOptions(BaseModel):
    preset_amounts: List[int]
    donation_types: List[DonationTypeOption]
    mailing_address: dict
    online_enabled: bool


class DonationResult(BaseModel):
    status: str
    message: str
