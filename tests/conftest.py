import pytest
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import httpx

from config import Settings
from models import Category, ThresholdPolicy

# ── Small scheme lists so rendered tables are easy to reason about ──
TEST_NIFTY50_CODES = ("100001", "100002", "100003", "100004")
TEST_NEXT50_CODES = ("200001",)

# ── mfapi.in payloads keyed by scheme code: (name, latest nav, previous nav) ──
# Change %: 100001 -> +1.00, 100002 -> -2.00, 100003 -> +3.00, 100004 -> no previous
FUND_NAVS = {
    "100001": ("Alpha Nifty 50 Index Fund - Direct Growth",       "101.0000", "100.0000"),
    "100002": ("Beta Nifty 50 Index Fund - Direct Growth",        "98.0000",  "100.0000"),
    "100003": ("Gamma Nifty 50 ETF FoF - Direct Growth",          "206.0000", "200.0000"),
    "100004": ("Delta Nifty 50 Index Fund - Direct Growth",       "50.0000",  None),
    "200001": ("Epsilon Nifty Next 50 Index Fund - Direct Growth", "55.0000",  "50.0000"),
}
# Expected NIFTY 50 order by change %: 100003 (+3), 100001 (+1), 100004 (None = 0), 100002 (-2)


def make_payload(name, nav, previous_nav, latest_date="16-10-2026", previous_date="15-10-2026"):
    data = []
    if nav is not None:
        data.append({"date": latest_date, "nav": nav})
    if previous_nav is not None:
        data.append({"date": previous_date, "nav": previous_nav})
    return {"meta": {"scheme_name": name, "scheme_code": 0}, "data": data, "status": "SUCCESS"}


def make_mfapi_handler(navs=None, status_overrides=None, raise_for=()):
    """
    Build an httpx.MockTransport handler serving /mf/{code}.
    status_overrides maps code -> HTTP status; raise_for lists codes whose
    request fails with a transport error.
    """
    navs = FUND_NAVS if navs is None else navs
    status_overrides = status_overrides or {}

    def handler(request: httpx.Request) -> httpx.Response:
        code = request.url.path.rsplit("/", 1)[-1]
        if code in raise_for:
            raise httpx.ConnectError("connection refused", request=request)
        if code in status_overrides:
            return httpx.Response(status_overrides[code], text="Internal Server Error")
        if code not in navs:
            return httpx.Response(404, json={"status": "NOT_FOUND"})
        return httpx.Response(200, json=make_payload(*navs[code]))

    return handler


@pytest.fixture
def settings():
    return Settings(
        email_user="alerts@example.com",
        email_pass="app-token",
        email_to="me@example.com",
        email_bcc="partner@example.com",
        threshold=0.30,
        policy=ThresholdPolicy.DOWNSIDE,
        scheme_codes={
            Category.NIFTY50: TEST_NIFTY50_CODES,
            Category.NIFTYNEXT50: TEST_NEXT50_CODES,
        },
        mfapi_base_url="https://api.mfapi.test",
        max_workers=4,
    )


@pytest.fixture
def mfapi_client():
    """An httpx.Client backed by the default mock handler."""
    client = httpx.Client(transport=httpx.MockTransport(make_mfapi_handler()))
    yield client
    client.close()


def ticker_returning(infos: dict):
    """
    Return a yf.Ticker replacement whose .info comes from infos[ticker].
    A value that is an Exception instance is raised instead.
    """
    class _T:
        def __init__(self, ticker):
            value = infos[ticker]
            if isinstance(value, Exception):
                raise value
            self.info = value
    return _T


def index_info(change, price=24000.0):
    return {"regularMarketChangePercent": change, "regularMarketPrice": price}
