"""Session report and activity log exports.

Pure, read-only transforms of the session: no network, no store access. The
HTTP layer decides when to call them and records the download in the log.
"""

from __future__ import annotations

import html
import re
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from .models import AnalysisRecord, LogEntry

CODE_FENCE_RE = re.compile(r"```(?:python|pseudocode)?\n([\s\S]*?)\n```")
_CODE_PLACEHOLDER = "\x00code{}\x00"
_CODE_PLACEHOLDER_RE = re.compile(r"\x00code(\d+)\x00")

REPORT_TITLE = "Quantum Code Architect - Session Report"

REPORT_STYLE = """
    body { font-family: 'Inter', sans-serif; line-height: 1.6; background-color: #f8fafc; color: #020617; padding: 2rem; max-width: 800px; margin: auto; }
    h1 { color: #0f172a; border-bottom: 2px solid #e2e8f0; padding-bottom: 0.5rem; }
    h2 { color: #1e293b; margin-top: 2rem; }
    img { max-width: 100%; height: auto; border-radius: 8px; margin: 1rem 0; }
    ul { list-style-type: disc; padding-left: 2rem; }
    pre { background-color: #0f172a; color: #e2e8f0; padding: 1rem; border-radius: 8px; white-space: pre-wrap; word-wrap: break-word; }
    code { font-family: 'Roboto Mono', monospace; }
    .analysis-block { margin-bottom: 3rem; padding-bottom: 2rem; }
    .session-divider { margin: 3rem 0; border: none; border-top: 2px dashed #cbd5e1; }
"""


def format_code_blocks(text: str) -> str:
    """Purpose: Turn a narrative into HTML with fenced code as block elements.
    Inputs/Outputs: Input is narrative text; output is an HTML fragment.
    Side Effects / State: None; pure function.
    Dependencies: CODE_FENCE_RE; used by the session report.
    Failure Modes: An unterminated fence is left as plain text.
    If Removed: Session report shows fenced code as raw backticks.
    Testing Notes: Check python/pseudocode/bare fences, and that no <br /> touches <pre>.
    """
    # Pull code out first so its newlines are kept verbatim.
    blocks = []

    def _stash(match: "re.Match[str]") -> str:
        blocks.append(html.escape(match.group(1)))
        return _CODE_PLACEHOLDER.format(len(blocks) - 1)

    body = html.escape(CODE_FENCE_RE.sub(_stash, text))
    body = body.replace("\n", "<br />")
    body = _CODE_PLACEHOLDER_RE.sub(lambda m: f"<pre><code>{blocks[int(m.group(1))]}</code></pre>", body)
    body = body.replace("<br /><pre>", "<pre>").replace("</pre><br />", "</pre>")
    return body


def _render_record(record: AnalysisRecord) -> str:
    title = html.escape(record.title)
    contents = "".join(f"<li>{html.escape(item)}</li>" for item in record.table_of_contents)
    return (
        '<div class="analysis-block">\n'
        f"  <h1>{title}</h1>\n"
        f"  <p><strong>Topic:</strong> {html.escape(record.topic)}</p>\n"
        f'  <img src="{html.escape(record.illustration_uri, quote=True)}" alt="Generated image for {html.escape(record.title, quote=True)}">\n'
        "  <h2>Table of Contents</h2>\n"
        f"  <ul>{contents}</ul>\n"
        "  <h2>Detailed Analysis</h2>\n"
        f'  <div class="story-content">{format_code_blocks(record.narrative)}</div>\n'
        "</div>"
    )


def render_session_html(history: Sequence[AnalysisRecord]) -> Optional[str]:
    """Render the whole session as a standalone HTML document; None when there is nothing to export."""
    if not history:
        return None
    blocks = '\n<hr class="session-divider">\n'.join(_render_record(record) for record in history)
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{REPORT_TITLE}</title>\n"
        f"  <style>{REPORT_STYLE}  </style>\n"
        "</head>\n"
        "<body>\n"
        f"{blocks}\n"
        "</body>\n"
        "</html>\n"
    )


def format_log_line(entry: LogEntry) -> str:
    return f"[{_iso(entry.timestamp, precise=True)}] [{entry.severity.value.upper()}] {entry.message}"


def render_log_transcript(logs: Iterable[LogEntry]) -> Optional[str]:
    """One line per entry; None for an empty log."""
    lines = [format_log_line(entry) for entry in logs]
    if not lines:
        return None
    return "\n".join(lines)


def session_report_filename(today: date) -> str:
    return f"qca-session-report-{today.isoformat()}.html"


def log_filename(now: datetime) -> str:
    return f"qca-logs-{_iso(now)}.txt"


def _iso(moment: datetime, precise: bool = False) -> str:
    # Milliseconds by default, microseconds for log lines; "Z" suffix for UTC.
    timespec = "microseconds" if precise else "milliseconds"
    stamp = moment.isoformat(timespec=timespec)
    if stamp.endswith("+00:00"):
        return stamp[: -len("+00:00")] + "Z"
    return stamp
