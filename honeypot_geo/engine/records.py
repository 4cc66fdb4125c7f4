"""Record types flowing through the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Address = str
Chunk = list[Address]


@dataclass(frozen=True, slots=True)
class LoginRecord:
    """One login attempt captured by the honeypot."""

    remote_ip: str
    login_id: int | None = None
    username: str = ""
    password: str = ""
    remote_version: str = ""
    timestamp: str = ""


class GeolocationResult(BaseModel):
    """Geolocation data the batch endpoint returned for one queried address."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    query: str
    country: str = ""
    country_code: str = Field(default="", alias="countryCode")
    region: str = ""
    region_name: str = Field(default="", alias="regionName")
    zip: str = ""
    isp: str = ""
    org: str = ""
    as_: str = Field(default="", alias="as")
    mobile: bool = False
    proxy: bool = False
    hosting: bool = False

    def as_row(self) -> dict[str, Any]:
        """Flatten into the column names used by the record sinks."""

        return {
            "RemoteIP": self.query,
            "Country": self.country,
            "CountryCode": self.country_code,
            "Region": self.region,
            "RegionName": self.region_name,
            "Zip": self.zip,
            "ISP": self.isp,
            "ASN": self.as_,
            "Mobile": self.mobile,
            "Proxy": self.proxy,
            "Hosting": self.hosting,
        }


__all__ = ["Address", "Chunk", "GeolocationResult", "LoginRecord"]
