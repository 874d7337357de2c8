from __future__ import annotations

from vuload.report.reporter import RenderedReport, console_summary, render, write_reports
from vuload.report.serialize import dumps, loads, result_from_dict, result_to_dict

__all__ = [
    "RenderedReport",
    "console_summary",
    "dumps",
    "loads",
    "render",
    "result_from_dict",
    "result_to_dict",
    "write_reports",
]
