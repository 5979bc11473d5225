#!/usr/bin/env python3
"""Site hierarchy (areas, buildings, floors) for Catalyst Center (DNAC).

A site's postal/geo location is not a top-level field: the controller
returns it inside `additionalInfo` under the "Location" namespace, and
Site.from_dict lifts it out.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from .client import DNACClient
from .exceptions import ApiError, InvalidSiteError
from .pagination import PAGE_SIZE, Pagination, fetch_all

logger = logging.getLogger(__name__)

# Controller error code for an unknown site name/id.
INVALID_SITE_ERROR_CODE = "NCGR10008"


class SiteType(str, Enum):
    AREA = "area"
    BUILDING = "building"
    FLOOR = "floor"


@dataclass
class Location:
    """Location attributes of a site."""
    address_inherited_from: str
    location_type: str
    country: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Location":
        return cls(
            address_inherited_from=data.get("addressInheritedFrom", ""),
            location_type=data.get("type", ""),
            country=data.get("country"),
            address=data.get("address"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )


@dataclass
class Site:
    """A node of the site hierarchy."""
    id: UUID
    name: str
    group_name_hierarchy: str
    group_hierarchy: str
    location: Optional[Location] = None
    additional_info: list[dict[str, Any]] = field(default_factory=list, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Site":
        """Create from API response dict, extracting the Location namespace."""
        additional_info = data.get("additionalInfo") or []

        location = None
        for entry in additional_info:
            if entry.get("nameSpace") == "Location":
                location = Location.from_dict(entry.get("attributes") or {})

        return cls(
            id=UUID(data["id"]),
            name=data["name"],
            group_name_hierarchy=data.get("groupNameHierarchy", ""),
            group_hierarchy=data.get("groupHierarchy", ""),
            location=location,
            additional_info=additional_info,
        )

    # Location getters return "" when the site carries no location.

    @property
    def country(self) -> str:
        return (self.location and self.location.country) or ""

    @property
    def address(self) -> str:
        return (self.location and self.location.address) or ""

    @property
    def latitude(self) -> str:
        return (self.location and self.location.latitude) or ""

    @property
    def longitude(self) -> str:
        return (self.location and self.location.longitude) or ""

    @property
    def location_type(self) -> str:
        return self.location.location_type if self.location else ""


@dataclass(frozen=True)
class SiteFilter:
    """Query filter for the site endpoint.

    name is a siteNameHierarchy such as "Global/Europe/Zurich".
    """
    name: Optional[str] = None
    site_id: Optional[UUID] = None
    site_type: Optional[SiteType] = None

    def to_params(self) -> dict[str, str]:
        params = {}
        if self.name:
            params["name"] = self.name
        if self.site_id is not None:
            params["siteId"] = str(self.site_id)
        if self.site_type is not None:
            params["type"] = SiteType(self.site_type).value
        return params


class SiteAPI:
    """Site hierarchy operations.

    Attributes:
        client: DNACClient instance for API communication
    """

    ENDPOINT = "/dna/intent/api/v2/site"

    def __init__(self, client: DNACClient):
        self.client = client

    async def get_sites(
        self,
        filter: Optional[SiteFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> list[Site]:
        """Fetch one page of sites.

        Raises:
            InvalidSiteError: If the filter names a site that does not exist
        """
        params = filter.to_params() if filter else None
        try:
            return await self.client.get_items(
                self.ENDPOINT,
                params=params,
                pagination=pagination,
                parser=Site.from_dict,
            )
        except ApiError as e:
            if e.code == INVALID_SITE_ERROR_CODE:
                raise InvalidSiteError.from_api_error(e)
            logger.error(f"Site lookup failed: {e}")
            raise

    async def fetch_all_sites(
        self,
        site_type: Optional[SiteType] = None,
        *,
        limit: int = PAGE_SIZE,
        timeout: Optional[float] = None,
    ) -> list[Site]:
        """Fetch every site, optionally restricted to one site type."""
        filter = SiteFilter(site_type=site_type) if site_type else None
        sites = await fetch_all(self.get_sites, filter, limit=limit, timeout=timeout)
        logger.info(f"Fetched {len(sites):,} sites")
        return sites


__all__ = [
    "INVALID_SITE_ERROR_CODE",
    "Location",
    "Site",
    "SiteAPI",
    "SiteFilter",
    "SiteType",
]
