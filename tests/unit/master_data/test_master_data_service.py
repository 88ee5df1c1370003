"""Tests for lookup tables."""

import pytest

from bhxh_gateway.core.modules.master_data.service import CATALOG_CODES, Catalog
from bhxh_gateway.errors import ValidationError


class TestMasterData:
    """Tests for the master data service."""

    def test_every_catalog_has_a_code(self):
        """Test that each catalog slug maps to a portal code."""
        assert set(CATALOG_CODES) == set(Catalog)

    @pytest.mark.parametrize(
        ("catalog", "code"),
        [
            (Catalog.PAPER_TYPES, "071"),
            (Catalog.COUNTRIES, "072"),
            (Catalog.ETHNICITIES, "073"),
            (Catalog.LABOR_PLAN_TYPES, "086"),
            (Catalog.BENEFITS, "098"),
            (Catalog.RELATIONSHIPS, "099"),
            (Catalog.DOCUMENT_LIST, "028"),
        ],
    )
    async def test_catalog_codes(self, core, portal, catalog, code):
        """Test that catalogs are fetched with user context only."""
        portal.api_handler = lambda c, data: [{"ma": "01"}]

        result = await core.services.master_data.get_catalog(None, catalog)

        sent_code, data, _ = portal.api_calls()[0]
        assert sent_code == code
        assert data == {"masobhxhuser": "U2", "macoquanuser": "C02", "loaidoituonguser": "2"}
        assert result == [{"ma": "01"}]

    async def test_districts(self, core, portal):
        """Test that districts are fetched by province without user context."""
        await core.services.master_data.get_districts(None, "01")

        code, data, _ = portal.api_calls()[0]
        assert code == "063"
        assert data == {"maTinh": "01"}

    async def test_districts_empty(self, core, portal):
        """Test that a null district list reads as empty."""
        portal.api_handler = lambda code, data: None

        assert await core.services.master_data.get_districts(None, "01") == []

    async def test_districts_require_province(self, core):
        """Test that the province code is required."""
        with pytest.raises(ValidationError):
            await core.services.master_data.get_districts(None, "")
