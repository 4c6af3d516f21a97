"""
Unit tests for report definitions, their descriptors and the report registry.
"""

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from reportable.core.config import ReportableConfig
from reportable.core.exceptions import UnknownReportTypeError
from reportable.filters import Filter, FilterCollection
from reportable.reporting import ExportMode, ReportDefinition, ReportDescriptor, ReportRegistry
from sample_reports import ProductReport, User, UserReport


class MonthlySalesReport(ReportDefinition):
    def query(self):
        return select(User.id)


@pytest.fixture
def config():
    return ReportableConfig(disk="local", output_path="reports", chunk_size=1000)


class TestReportDefinitionDefaults:
    """Test output settings and their config fallbacks"""

    def test_default_filename_is_kebab_cased(self):
        assert MonthlySalesReport().filename() == "monthly-sales.csv"

    def test_config_fallbacks(self, config):
        report = UserReport()
        assert report.disk(config) == "local"
        assert report.path(config) == "reports"
        assert report.output_path(config) == "reports/users.csv"
        assert report.chunk_size(config) == 1000
        assert report.mode() == ExportMode.CHUNKED

    def test_overrides(self, config):
        report = UserReport().to_disk("s3").to_path("/custom/exports/").chunked(250)
        assert report.disk(config) == "s3"
        assert report.output_path(config) == "custom/exports/users.csv"
        assert report.chunk_size(config) == 250

    def test_empty_path_writes_to_disk_root(self, config):
        assert UserReport().to_path("").output_path(config) == "users.csv"

    def test_all_at_once_switches_mode(self):
        report = UserReport().all_at_once()
        assert report.mode() == ExportMode.BULK
        assert report.chunked().mode() == ExportMode.CHUNKED

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            UserReport().chunked(0)

    def test_instances_do_not_share_filters(self):
        first = UserReport().add_filter(Filter.equals("status", "active"))
        assert UserReport().get_filters() == []
        assert first.get_filters() == [Filter.equals("status", "active")]

    def test_with_filters_copies_collection(self):
        filters = FilterCollection([Filter.equals("status", "active")], group="users")
        report = UserReport().with_filters(filters)
        filters.add(Filter.equals("role", "admin"))
        assert report.get_filter_collection().count() == 1
        assert report.get_filter_collection().group == "users"


class TestReportDescriptor:
    """Test snapshotting and rebuilding reports"""

    def test_descriptor_captures_settings(self, config):
        report = ProductReport("Electronics").add_filter(Filter.greater_than("price", 100)).all_at_once()
        descriptor = report.to_descriptor(config)
        assert descriptor.report_type == "products"
        assert descriptor.arguments == {"category": "Electronics"}
        assert descriptor.filters == [{"column": "price", "operator": "gt", "value": 100}]
        assert descriptor.mode == ExportMode.BULK
        assert descriptor.disk == "local"
        assert descriptor.path == "reports"

    def test_rebuild_from_json(self, config):
        report = (
            ProductReport("Electronics")
            .with_filters(FilterCollection([Filter.between("price", 100, 500)], group="p"))
            .to_disk("s3")
            .to_path("custom")
            .chunked(2)
        )
        payload = report.to_descriptor(config).model_dump(mode="json")

        rebuilt = ReportDefinition.from_descriptor(ReportDescriptor.model_validate(payload))

        assert isinstance(rebuilt, ProductReport)
        assert rebuilt.category == "Electronics"
        assert rebuilt.get_filter_collection() == FilterCollection([Filter.between("price", 100, 500)], group="p")
        assert rebuilt.disk(config) == "s3"
        assert rebuilt.output_path(config) == "custom/products-electronics.csv"
        assert rebuilt.chunk_size(config) == 2

    def test_rebuilt_report_is_independent(self, config):
        report = UserReport().add_filter(Filter.equals("status", "active"))
        descriptor = report.to_descriptor(config)
        report.add_filter(Filter.equals("role", "admin")).to_path("elsewhere")

        rebuilt = ReportDefinition.from_descriptor(descriptor)

        assert rebuilt.get_filters() == [Filter.equals("status", "active")]
        assert rebuilt.path(config) == "reports"

    @pytest.mark.parametrize(
        "changes",
        [
            {"chunk_size": 0},
            {"report_type": "  "},
            {"arguments": {"when": object()}},
            {"unexpected": True},
        ],
    )
    def test_invalid_descriptors(self, changes):
        data = {"report_type": "users", "disk": "local", "path": "reports"}
        data.update(changes)
        with pytest.raises(ValidationError):
            ReportDescriptor(**data)


class TestReportRegistry:
    """Test report type resolution"""

    def test_register_with_name(self):
        registry = ReportRegistry()

        @registry.register(name="monthly")
        class NamedReport(MonthlySalesReport):
            pass

        assert NamedReport.type_tag() == "monthly"
        assert registry.get("monthly") is NamedReport
        assert registry.get_all() == [NamedReport]

    def test_register_without_name_uses_import_path(self):
        registry = ReportRegistry()
        registry.register(MonthlySalesReport)
        assert registry.get(MonthlySalesReport.type_tag()) is MonthlySalesReport
        assert MonthlySalesReport.type_tag().endswith("MonthlySalesReport")

    def test_dotted_path_is_imported_on_demand(self):
        assert ReportRegistry().get("sample_reports.UserReport") is UserReport

    @pytest.mark.parametrize(
        "tag",
        ["nope", "no_such_module.Report", "reportable.filters.models.Filter", "sample_reports.Missing"],
    )
    def test_unknown_types(self, tag):
        with pytest.raises(UnknownReportTypeError):
            ReportRegistry().get(tag)

    def test_unknown_type_is_a_lookup_error(self):
        with pytest.raises(LookupError):
            ReportRegistry().get("nope")
