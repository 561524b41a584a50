"""
Report rendering for chord statistics

The text report is the default output: a two line header followed by one
"<chord>: <count>" line per chord. JSON and CSV renderings carry the same
entries in the same order.
"""

import csv
import io
import json
from pathlib import Path
from typing import List, Union

from .aggregator import ReportEntry

REPORT_TITLE = "Chord Usage Statistics"
REPORT_RULE = "=" * len(REPORT_TITLE)

FORMATS = ('text', 'json', 'csv')


def render_report(entries: List[ReportEntry]) -> List[str]:
    """Render ranked entries as report lines, header first"""
    lines = [REPORT_TITLE, REPORT_RULE]
    for entry in entries:
        lines.append(f"{entry.chord}: {entry.count}")
    return lines


def format_text_output(entries: List[ReportEntry]) -> str:
    return "\n".join(render_report(entries))


def format_json_output(entries: List[ReportEntry]) -> str:
    """JSON object of chord -> count, in ranked order"""
    return json.dumps({e.chord: e.count for e in entries}, indent=2) + "\n"


def format_csv_output(entries: List[ReportEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["chord", "count"])
    for entry in entries:
        writer.writerow([entry.chord, entry.count])
    return buffer.getvalue()


def format_report(entries: List[ReportEntry], fmt: str = 'text') -> str:
    """Render entries in one of FORMATS"""
    if fmt == 'text':
        return format_text_output(entries)
    if fmt == 'json':
        return format_json_output(entries)
    if fmt == 'csv':
        return format_csv_output(entries)
    raise ValueError(f"Unknown report format: {fmt!r} (expected one of {', '.join(FORMATS)})")


def write_report(output_path: Union[str, Path], text: str) -> Path:
    """
    Write the rendered report to output_path.

    OSError from the filesystem is left to the caller.
    """
    output_path = Path(output_path)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(text)
    return output_path
