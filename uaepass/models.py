"""
Wire models for UAE PASS token and userinfo responses.
Attribute names are snake_case; aliases are the provider's JSON keys.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Token endpoint payload (authorization_code and refresh_token grants)."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = ""
    token_type: str = ""
    expires_in: int = 0
    scope: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    state: str | None = None


class UserProfile(BaseModel):
    """
    Userinfo payload. Fields the provider adds later land in model_extra (see `extra`),
    so a new attribute never breaks parsing.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    sub: str = ""
    uuid: str = ""
    user_type: str = Field("", alias="userType")
    profile_type: str | None = Field(None, alias="profileType")
    # Emirates ID number
    idn: str | None = None
    # Visitors carry a unified id instead of an Emirates ID
    unified_id: str | None = Field(None, alias="unifiedID")
    id_type: str | None = Field(None, alias="idType")
    sp_uuid: str | None = Field(None, alias="spuuid")
    first_name_en: str = Field("", alias="firstnameEN")
    last_name_en: str = Field("", alias="lastnameEN")
    full_name_en: str = Field("", alias="fullnameEN")
    first_name_ar: str | None = Field(None, alias="firstnameAR")
    last_name_ar: str | None = Field(None, alias="lastnameAR")
    full_name_ar: str | None = Field(None, alias="fullnameAR")
    title_en: str | None = Field(None, alias="titleEN")
    title_ar: str | None = Field(None, alias="titleAR")
    email: str | None = None
    mobile: str | None = None
    gender: str | None = None
    nationality_en: str | None = Field(None, alias="nationalityEN")
    nationality_ar: str | None = Field(None, alias="nationalityAR")
    acr: str | None = None
    amr: list[str] | None = None

    @property
    def emirates_id(self) -> str:
        return self.idn or ""

    @property
    def first_name(self) -> str:
        return self.first_name_en

    @property
    def last_name(self) -> str:
        return self.last_name_en

    @property
    def full_name(self) -> str:
        return self.full_name_en

    @property
    def phone_number(self) -> str | None:
        return self.mobile

    @property
    def extra(self) -> dict[str, Any]:
        """Provider fields this model does not declare."""
        return dict(self.model_extra or {})
