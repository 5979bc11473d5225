#!/usr/bin/env python3
"""Unit tests for the site hierarchy API."""
import sys
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.dnac.api.client import DNACClient
from src.dnac.api.envelope import decode_envelope
from src.dnac.api.exceptions import (
    ApiError,
    InvalidSiteError,
    NotFoundError,
    ResponseDecodeError,
)
from src.dnac.api.sites import (
    INVALID_SITE_ERROR_CODE,
    Site,
    SiteAPI,
    SiteFilter,
    SiteType,
)

SITE_ID = "4e2d5a2b-8a4d-4e1b-9a6c-0f0b5f9d2a11"

BUILDING = {
    "id": SITE_ID,
    "name": "Zurich HQ",
    "groupNameHierarchy": "Global/Europe/Zurich HQ",
    "groupHierarchy": "a/b/c",
    "additionalInfo": [
        {"nameSpace": "System Settings", "attributes": {}},
        {
            "nameSpace": "Location",
            "attributes": {
                "addressInheritedFrom": SITE_ID,
                "type": "building",
                "country": "Switzerland",
                "address": "Bahnhofstrasse 1, Zurich",
                "latitude": "47.37",
                "longitude": "8.54",
            },
        },
    ],
}


def api_error(code):
    return ApiError(
        messages=["failed"],
        code=code,
        detail_message="Site not found",
        reference="/dna/intent/api/v2/site",
    )


class TestSite:

    def test_location_lifted_from_additional_info(self):
        site = Site.from_dict(BUILDING)

        assert site.id == UUID(SITE_ID)
        assert site.group_name_hierarchy == "Global/Europe/Zurich HQ"
        assert site.country == "Switzerland"
        assert site.address == "Bahnhofstrasse 1, Zurich"
        assert site.latitude == "47.37"
        assert site.longitude == "8.54"
        assert site.location_type == "building"

    def test_area_without_location(self):
        site = Site.from_dict({"id": SITE_ID, "name": "Global"})

        assert site.location is None
        assert site.country == ""
        assert site.address == ""
        assert site.location_type == ""

    def test_area_with_partial_location(self):
        data = dict(
            BUILDING,
            additionalInfo=[{"nameSpace": "Location", "attributes": {"type": "area", "country": "Switzerland"}}],
        )
        site = Site.from_dict(data)

        assert site.location_type == "area"
        assert site.country == "Switzerland"
        assert site.latitude == ""

    def test_malformed_additional_info_is_decode_error(self):
        with pytest.raises(ResponseDecodeError):
            decode_envelope({"response": [dict(BUILDING, additionalInfo=["oops"])]}, Site.from_dict)


class TestSiteFilter:

    def test_params(self):
        params = SiteFilter(
            name="Global/Europe",
            site_id=UUID(SITE_ID),
            site_type=SiteType.FLOOR,
        ).to_params()

        assert params == {"name": "Global/Europe", "siteId": SITE_ID, "type": "floor"}

    def test_empty(self):
        assert SiteFilter().to_params() == {}


class TestSiteAPI:

    @pytest.fixture
    def mock_client(self):
        return MagicMock(spec=DNACClient)

    @pytest.fixture
    def api(self, mock_client):
        return SiteAPI(client=mock_client)

    def test_endpoint_constant(self):
        assert SiteAPI.ENDPOINT == "/dna/intent/api/v2/site"

    @pytest.mark.asyncio
    async def test_get_sites(self, api, mock_client):
        mock_client.get_items = AsyncMock(return_value=[Site.from_dict(BUILDING)])

        sites = await api.get_sites(SiteFilter(name="Global/Europe/Zurich HQ"))

        assert sites[0].name == "Zurich HQ"
        assert mock_client.get_items.call_args.kwargs["params"] == {"name": "Global/Europe/Zurich HQ"}

    @pytest.mark.asyncio
    async def test_unknown_site_maps_to_invalid_site(self, api, mock_client):
        mock_client.get_items = AsyncMock(side_effect=api_error(INVALID_SITE_ERROR_CODE))

        with pytest.raises(InvalidSiteError) as exc:
            await api.get_sites(SiteFilter(name="Global/Nowhere"))

        assert isinstance(exc.value, NotFoundError)
        assert exc.value.code == "NCGR10008"
        assert exc.value.reference == "/dna/intent/api/v2/site"

    @pytest.mark.asyncio
    async def test_other_api_error_propagates(self, api, mock_client):
        mock_client.get_items = AsyncMock(side_effect=api_error("NCGR99999"))

        with pytest.raises(ApiError) as exc:
            await api.get_sites()

        assert not isinstance(exc.value, InvalidSiteError)
        assert exc.value.code == "NCGR99999"

    @pytest.mark.asyncio
    async def test_fetch_all_sites_by_type(self, api, mock_client):
        mock_client.get_items = AsyncMock(return_value=[Site.from_dict(BUILDING)])

        sites = await api.fetch_all_sites(SiteType.BUILDING)

        assert len(sites) == 1
        call = mock_client.get_items.call_args
        assert call.kwargs["params"] == {"type": "building"}
        assert call.kwargs["pagination"].offset == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
