"""
Insights Core v1.0.0 — Versioning

Every InsightSummary carries a version tag so consumers can detect
formula changes.

Version policy:
    - Patch (0.0.x): Bug fixes, no formula changes.
    - Minor (0.x.0): New fields added, existing unchanged.
    - Major (x.0.0): Scoring table, threshold or formula change.

The driver table and breakdown constants are part of the version contract.
"""


class InsightsVersion:
    """Version tagging for Insights Core bundles."""

    CURRENT = "1.0.0"

    def current_version(self) -> str:
        return self.CURRENT

    @staticmethod
    def is_compatible(result_version: str, expected_major: int = 1) -> bool:
        """Same major version (per semver) means compatible."""
        try:
            return int(result_version.split(".")[0]) == expected_major
        except (AttributeError, IndexError, ValueError):
            return False
