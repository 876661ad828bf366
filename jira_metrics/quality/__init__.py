"""Data quality scanning for issue histories."""

from jira_metrics.quality.descriptions import describe_problem
from jira_metrics.quality.report import DataQualityEntry, DataQualityReport, DataQualityResult

__all__ = [
    "DataQualityEntry",
    "DataQualityReport",
    "DataQualityResult",
    "describe_problem",
]
