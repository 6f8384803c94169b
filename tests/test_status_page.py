"""
Test suite for public status page assembly
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from autopsy.config import AutopsyConfig, StatusPageConfig
from autopsy.models import Incident, OverallStatus, Severity
from autopsy.orchestrator import PersistenceError
from autopsy.status_page import (
    CURRENT_MESSAGE,
    RESPONSE_PLAYBOOK,
    build_status_page,
    get_status_page,
    parse_period_hours,
    resolve_period,
)
from autopsy.store import StoreError

from conftest import NOW, make_incident, make_service

H = timedelta(hours=1)


class TestResolvePeriod:
    """Test window resolution from the requested period"""

    @pytest.mark.parametrize("raw", [0, -5, 1000, 721, "abc", "", None, True, 3.5])
    def test_unusable_values_fall_back_to_default(self, raw):
        start, end = resolve_period(raw, NOW)
        assert end == NOW
        assert end - start == 24 * H

    @pytest.mark.parametrize("raw,hours", [(48, 48), ("48", 48), (" 12 ", 12), (1, 1), (720, 720)])
    def test_valid_values_are_honored(self, raw, hours):
        start, end = resolve_period(raw, NOW)
        assert end - start == hours * H

    def test_custom_bounds(self):
        start, _ = resolve_period(100, NOW, default_hours=6, max_hours=72)
        assert NOW - start == 6 * H

    def test_parse_period_hours(self):
        assert parse_period_hours("7") == 7
        assert parse_period_hours("seven") is None
        assert parse_period_hours(False) is None


class TestBuildStatusPage:
    """Test snapshot assembly from services and incidents"""

    def test_empty_inputs(self):
        page = build_status_page([], [], now=NOW)

        assert page.overall_status == OverallStatus.OPERATIONAL
        assert page.services == []
        assert page.incidents == []
        assert page.updated_at == NOW
        assert page.period_end == NOW
        assert page.period_start == NOW - 24 * H

    def test_open_incidents_listed_with_playbook(self):
        open_incident = make_incident(
            "payments",
            NOW - 2 * H,
            id=7,
            severity=Severity.CRITICAL,
            status_page_url="/status/alt-000003",
        )
        resolved = make_incident("search", NOW - 5 * H, NOW - 4 * H, id=8)

        page = build_status_page(
            [make_service("payments"), make_service("search", 2)],
            [open_incident, resolved],
            now=NOW,
        )

        assert page.overall_status == OverallStatus.MAJOR_OUTAGE
        assert len(page.incidents) == 1

        entry = page.incidents[0]
        assert entry.id == "inc-000007"
        assert entry.service == "payments"
        assert entry.status == "investigating"
        assert entry.declared_at == NOW - 2 * H
        assert entry.status_page_url == "/status/alt-000003"
        assert entry.current_message == CURRENT_MESSAGE
        assert entry.response_playbook == list(RESPONSE_PLAYBOOK)
        assert len(entry.response_playbook) == 4

    def test_resolved_incidents_still_count_toward_downtime(self):
        resolved = make_incident("search", NOW - 5 * H, NOW - 4 * H)
        page = build_status_page([], [resolved], now=NOW, period_hours=24)

        assert page.incidents == []
        assert page.overall_status == OverallStatus.OPERATIONAL
        assert page.services[0].service == "search"
        assert page.services[0].downtime_minutes == 60

    def test_period_hours_applied(self):
        page = build_status_page([make_service("api")], [], now=NOW, period_hours="48")
        assert page.period_start == NOW - 48 * H
        assert page.services[0].period_start == NOW - 48 * H

    def test_settings_bounds(self):
        settings = StatusPageConfig(default_period_hours=2, max_period_hours=12)
        page = build_status_page([], [], now=NOW, period_hours=24, settings=settings)
        assert page.period_start == NOW - 2 * H

    def test_boundary_shape(self):
        incident = make_incident("payments", NOW - H, id=1)
        data = build_status_page([], [incident], now=NOW).to_dict()

        assert data["overallStatus"] == "degraded_performance"
        assert set(data) == {
            "overallStatus",
            "updatedAt",
            "periodStart",
            "periodEnd",
            "services",
            "incidents",
        }
        assert data["services"][0]["availabilityPercent"] == pytest.approx(100 - 100 / 24)
        assert data["incidents"][0]["responsePlaybook"][0].startswith("Assign incident commander")


class TestGetStatusPage:
    """Test reading status page inputs from a store"""

    @pytest.mark.asyncio
    async def test_reads_from_store(self, memory_store):
        await memory_store.ensure_service("search")
        await memory_store.create_incident(
            Incident(service="payments", title="Checkout down", severity=Severity.WARNING)
        )

        page = await get_status_page(memory_store, period_hours="abc")

        assert page.overall_status == OverallStatus.DEGRADED_PERFORMANCE
        assert [entry.service for entry in page.services] == ["payments", "search"]
        assert page.period_end - page.period_start == 24 * H
        assert [entry.id for entry in page.incidents] == ["inc-000001"]

    @pytest.mark.asyncio
    async def test_uses_configured_default_period(self, memory_store):
        config = AutopsyConfig(status_page=StatusPageConfig(default_period_hours=6))
        page = await get_status_page(memory_store, config=config)
        assert page.period_end - page.period_start == 6 * H

    @pytest.mark.asyncio
    async def test_store_failure_raises_persistence_error(self, memory_store):
        with patch.object(
            memory_store, "incidents", AsyncMock(side_effect=StoreError("disk gone"))
        ):
            with pytest.raises(PersistenceError) as exc_info:
                await get_status_page(memory_store)

        assert exc_info.value.operation == "read_status_inputs"
        assert exc_info.value.alert_id is None
