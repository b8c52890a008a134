import math
import logging
from concurrent.futures import ThreadPoolExecutor

import httpx
import yfinance as yf

from errors import IndexFetchError
from models import Category, FundRecord, IndexQuote, classify_fund, compute_change_percent

logger = logging.getLogger(__name__)


def _sanitize(v):
    if isinstance(v, float) and not math.isfinite(v):
        return None
    return v


def check_index(label: str, ticker: str, category: Category) -> IndexQuote:
    """
    Fetch the current % change for one index via yf.Ticker().info.

    regularMarketChangePercent is required: a missing, NaN or infinite value raises
    IndexFetchError. regularMarketPrice is optional and sanitized to None.
    Provider errors propagate unchanged.
    """
    info = yf.Ticker(ticker).info or {}

    change = _sanitize(info.get("regularMarketChangePercent"))
    if change is None:
        raise IndexFetchError([(ticker, ValueError("regularMarketChangePercent unavailable"))])

    close = _sanitize(info.get("regularMarketPrice"))
    return IndexQuote(
        label=label,
        change=float(change),
        close=float(close) if close is not None else None,
        category=category,
    )


def check_indices(indices) -> list[IndexQuote]:
    """
    Run check_index() for every (label, ticker, category) concurrently and join.
    Results keep the input order. Any failure is collected; after the join a
    single IndexFetchError listing every failed ticker is raised.
    """
    quotes: list[IndexQuote] = []
    failures: list[tuple[str, Exception]] = []

    with ThreadPoolExecutor(max_workers=max(len(indices), 1)) as pool:
        futures = [(ticker, pool.submit(check_index, label, ticker, category))
                   for label, ticker, category in indices]
        for ticker, future in futures:
            try:
                quotes.append(future.result())
            except IndexFetchError as exc:
                failures.extend(exc.failures)
            except Exception as exc:
                failures.append((ticker, exc))

    if failures:
        raise IndexFetchError(failures)
    return quotes


def _parse_nav(entry) -> float | None:
    if not entry:
        return None
    nav = float(entry["nav"])
    if not math.isfinite(nav):
        raise ValueError(f"non-finite NAV {entry['nav']!r}")
    return nav


def fetch_fund_details(client: httpx.Client, code: str, base_url: str) -> FundRecord | None:
    """
    Fetch NAV detail for one scheme code from mfapi.in.
    Returns a FundRecord or None on failure. Never raises.

    data[0] is the latest NAV entry and data[1] the previous one. Either may
    be absent, in which case the NAV is None and change_percent is None.
    """
    try:
        resp = client.get(f"{base_url}/mf/{code}")
        resp.raise_for_status()
        payload = resp.json()

        name = (payload.get("meta") or {}).get("scheme_name") or "Unknown Fund"
        entries = payload.get("data") or []
        latest = entries[0] if len(entries) > 0 else None
        previous = entries[1] if len(entries) > 1 else None

        nav = _parse_nav(latest)
        previous_nav = _parse_nav(previous)

        return FundRecord(
            code=code,
            name=name,
            nav=nav,
            nav_date=(latest or {}).get("date", ""),
            previous_nav=previous_nav,
            previous_date=(previous or {}).get("date", ""),
            change_percent=compute_change_percent(nav, previous_nav),
            category=classify_fund(name),
        )

    except Exception as exc:
        logger.warning("Failed to fetch fund %s: %r", code, exc)
        return None


def fetch_funds(codes, settings, client: httpx.Client | None = None) -> tuple[list[FundRecord], list[str]]:
    """
    Call fetch_fund_details() for every code concurrently, sharing one client.
    Returns: (records in input order, list of failed codes)
    """
    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=settings.http_timeout, follow_redirects=True)

    records: list[FundRecord] = []
    failed:  list[str] = []

    try:
        workers = max(1, min(settings.max_workers, len(codes)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(
                lambda code: fetch_fund_details(client, code, settings.mfapi_base_url), codes
            ))
    finally:
        if owns_client:
            client.close()

    for code, record in zip(codes, results):
        if record is None:
            failed.append(code)
        else:
            records.append(record)

    return records, failed
