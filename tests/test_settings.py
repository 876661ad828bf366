import pytest

from jira_metrics.core.config import DEFAULT_PERCENTILE, ReportSettings
from jira_metrics.core.errors import ConfigurationError
from jira_metrics.core.settings import clear_settings_cache, load_report_settings, settings_from_dict


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert load_report_settings(tmp_path) == ReportSettings()


def test_settings_load(tmp_path):
    (tmp_path / "jira_metrics.yaml").write_text(
        "report:\n"
        "  timezone: America/Santiago\n"
        "  project_id: 10\n"
        "  blocked_statuses: [Blocked, Waiting]\n"
        "  status_category_mappings:\n"
        "    - {status: Parked, category: To Do}\n"
    )
    settings = load_report_settings(tmp_path)
    assert settings.timezone == "America/Santiago"
    assert settings.project_id == 10
    assert settings.blocked_statuses == ["Blocked", "Waiting"]
    assert settings.status_category_mappings == [{"status": "Parked", "category": "To Do"}]
    assert settings.percentile == DEFAULT_PERCENTILE


def test_settings_are_cached_per_path(tmp_path):
    path = tmp_path / "jira_metrics.yaml"
    path.write_text("percentile: 50\n")
    assert load_report_settings(path).percentile == 50
    path.write_text("percentile: 70\n")
    assert load_report_settings(path).percentile == 50
    assert load_report_settings(path, use_cache=False).percentile == 70


def test_unknown_keys_are_rejected():
    with pytest.raises(ConfigurationError, match="Unknown settings in test: colour"):
        settings_from_dict({"colour": "red"}, source="test")


def test_bad_values_are_rejected(tmp_path):
    path = tmp_path / "jira_metrics.yaml"
    path.write_text("percentile: lots\n")
    with pytest.raises(ConfigurationError, match="Invalid value"):
        load_report_settings(path)

    path.write_text("percentile: [unclosed\n")
    with pytest.raises(ConfigurationError, match="Unable to parse"):
        load_report_settings(path, use_cache=False)
