"""
Domain helpers for the SRD API: response envelopes and record resolution.
"""

from .envelope import ResultEnvelope, build_bare_list, build_list_envelope, build_record
from .records import RecordResolver

__all__ = [
    "RecordResolver",
    "ResultEnvelope",
    "build_bare_list",
    "build_list_envelope",
    "build_record",
]
