"""Configuration classes for conchshell reports."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ReportConfig:
    """Classification and filtering policy shared by the report builders."""

    # Bucket name for any missing datacenter, rack, category, vendor or health
    unknown: str = "UNKNOWN"

    # Upstream values that mean "no classification"
    undetermined_markers: Tuple[str, ...] = ("", "Undetermined")

    # Component names ending in the suffix collapse into one component
    peer_suffix: str = "_peer"
    peer_component: str = "switch_peer"

    # Component types not broken out by component name
    subtype_denylist: Tuple[str, ...] = ("SAS_SSD", "SATA_SSD", "SAS_HDD", "CPU")

    # Remediations faster than this many seconds are ignored
    remediation_minimum: int = 90

    # Id reported for a datacenter that could not be determined
    null_uuid: str = "00000000-0000-0000-0000-000000000000"

    # Validation status and device health that mark a failure
    failing_status: str = "fail"

    def is_denylisted(self, component_type: str) -> bool:
        """Return True when a component type has no per-component breakdown."""
        return component_type in self.subtype_denylist


# Global configuration instance
REPORT_CONFIG = ReportConfig()
