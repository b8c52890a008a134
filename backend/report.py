import math
import logging
from dataclasses import dataclass, field
from html import escape

from ingest import fetch_funds
from models import Category, FundRecord, IndexQuote, ThresholdPolicy

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
RUPEE = "₹"

SUBJECT_QUIET = "Market Index Update"
SUBJECT_ALERT = "📉 Market Alert — Investment Opportunity"
DISCLAIMER = "*This is informational — not financial advice"

_CELL = "border:1px solid #ccc; padding:8px;"


@dataclass
class FundTable:
    title: str
    funds: list[FundRecord] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Report:
    subject: str
    html: str
    text: str


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567: last three digits, then groups of two
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(value) -> str:
    """
    Format a rupee amount with Indian digit grouping and two decimals.

    None, NaN, infinity and zero all render as the placeholder, so a genuine
    NAV of 0 is indistinguishable from missing data on screen.
    """
    if value is None:
        return PLACEHOLDER
    amount = float(value)
    if not math.isfinite(amount) or amount == 0:
        return PLACEHOLDER

    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    return f"{RUPEE}{sign}{_group_indian(whole)}.{frac}"


def format_change(change: float | None) -> str:
    if change is None:
        return PLACEHOLDER
    return f"{change:.2f}%"


def _color(change: float | None) -> str:
    return "red" if change is not None and change < 0 else "green"


def sort_funds(funds: list[FundRecord]) -> list[FundRecord]:
    """Biggest gain first. Stable; a missing change sorts as 0."""
    return sorted(
        funds,
        key=lambda f: f.change_percent if f.change_percent is not None else 0.0,
        reverse=True,
    )


def load_funds(codes, title: str, settings, client=None) -> FundTable:
    """
    Fetch every scheme code concurrently, drop failures, and rank the rest.
    Failed codes are kept on the table for logging, never rendered as rows.
    """
    records, failed = fetch_funds(codes, settings, client=client)
    for code in failed:
        logger.warning("Fund %s dropped from %s table", code, title)
    logger.info("%s: %d of %d funds loaded", title, len(records), len(codes))
    return FundTable(title=title, funds=sort_funds(records), failed=failed)


# ─── HTML fragments ──────────────────────────────────────────────────────────

def _nav_cell(value: float | None, date: str) -> str:
    text = format_inr(value)
    if date and value is not None:
        text += f'<br><span style="font-size:11px; color:#666;">{escape(date)}</span>'
    return text


def render_index_table_html(quotes: list[IndexQuote]) -> str:
    rows = "".join(
        f"""
      <tr>
        <td style="{_CELL}"><b>{escape(q.label)}</b></td>
        <td style="{_CELL} color:{_color(q.change)};">{format_change(q.change)}</td>
      </tr>"""
        for q in quotes
    )
    return f"""
  <h2 style="color:#D32F2F;">📈 Market Index Updates</h2>
  <table style="width:100%; border-collapse: collapse;">
    <thead>
      <tr style="background:#eee;">
        <th style="{_CELL}">Index</th>
        <th style="{_CELL}">Change (%)</th>
      </tr>
    </thead>
    <tbody>{rows}
    </tbody>
  </table>"""


def render_fund_table_html(table: FundTable) -> str:
    if not table.funds:
        return ""
    rows = "".join(
        f"""
        <tr>
          <td style="{_CELL} text-align:left;">{escape(f.name)}</td>
          <td style="{_CELL}">{_nav_cell(f.previous_nav, f.previous_date)}</td>
          <td style="{_CELL}">{_nav_cell(f.nav, f.nav_date)}</td>
          <td style="{_CELL} font-weight:bold; color:{_color(f.change_percent)};">{format_change(f.change_percent)}</td>
        </tr>"""
        for f in table.funds
    )
    return f"""
  <h3 style="margin-top:20px;">{escape(table.title)} Funds</h3>
  <table style="width:100%; border-collapse: collapse;">
    <thead>
      <tr style="background:#004B92; color:white;">
        <th style="{_CELL}">Fund</th>
        <th style="{_CELL}">Prev NAV</th>
        <th style="{_CELL}">Latest NAV</th>
        <th style="{_CELL}">Change %</th>
      </tr>
    </thead>
    <tbody>{rows}
    </tbody>
  </table>"""


# ─── Plain-text fragments ────────────────────────────────────────────────────

def render_index_table_text(quotes: list[IndexQuote]) -> str:
    lines = ["Market Index Changes:"]
    lines += [f"{q.label}: {format_change(q.change)}" for q in quotes]
    return "\n".join(lines) + "\n"


def render_fund_table_text(table: FundTable) -> str:
    if not table.funds:
        return ""
    lines = ["", f"{table.title} Funds:"]
    for f in table.funds:
        prev = format_inr(f.previous_nav)
        latest = format_inr(f.nav)
        if f.previous_date and f.previous_nav is not None:
            prev += f" ({f.previous_date})"
        if f.nav_date and f.nav is not None:
            latest += f" ({f.nav_date})"
        lines.append(f"- {f.name}: {prev} -> {latest}, {format_change(f.change_percent)}")
    return "\n".join(lines) + "\n"


def quiet_notice(threshold: float, policy: ThresholdPolicy) -> str:
    if policy is ThresholdPolicy.DOWNSIDE:
        return f"No index fell by {threshold:.2f}% or more today."
    return f"No index moved by {threshold:.2f}% or more in either direction today."


def build_report(
    quotes: list[IndexQuote],
    triggered: dict[Category, bool],
    fund_tables: list[FundTable],
    settings,
) -> Report:
    """
    Assemble the single email for a run.

    The index summary is always present. With nothing triggered the summary
    is followed by a notice naming the threshold; otherwise each non-empty
    fund table is appended, then the disclaimer.
    """
    html = render_index_table_html(quotes)
    text = render_index_table_text(quotes)

    if not any(triggered.values()):
        notice = quiet_notice(settings.threshold, settings.policy)
        html += f'\n  <p style="margin-top:20px;">{escape(notice)}</p>'
        text += f"\n{notice}\n"
        return Report(subject=SUBJECT_QUIET, html=html, text=text)

    for table in fund_tables:
        html += render_fund_table_html(table)
        text += render_fund_table_text(table)

    html += f'\n  <p style="margin-top:20px; font-style:italic;">{escape(DISCLAIMER)}</p>'
    text += f"\n{DISCLAIMER}\n"
    return Report(subject=SUBJECT_ALERT, html=html, text=text)
