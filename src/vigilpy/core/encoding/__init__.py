"""Wire encoders for log entries and incident reports."""

from vigilpy.core.encoding.ndjson import encode_logs, log_to_dict
from vigilpy.core.encoding.report import encode_report, report_to_dict

__all__ = ["encode_logs", "encode_report", "log_to_dict", "report_to_dict"]
