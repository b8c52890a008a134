import sys
import logging

import alerts
import config
import ingest
import mailer
import report
from errors import MarketAlertError

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run(settings: config.Settings) -> report.Report:
    """
    One pass: check indices, evaluate thresholds, load funds for each
    triggered category, build the report, send it.

    Index and mail failures propagate. The mailer is only reached once every
    fetch has completed.
    """
    logger.info("Checking market indices...")
    quotes = ingest.check_indices(settings.indices)
    triggered = alerts.evaluate(quotes, settings.threshold, settings.policy)

    fund_tables = []
    total_failed = 0
    for quote in quotes:
        if not triggered.get(quote.category):
            continue
        codes = settings.scheme_codes.get(quote.category, ())
        title = config.TABLE_TITLES.get(quote.category, quote.label.upper())
        table = report.load_funds(codes, title, settings)
        total_failed += len(table.failed)
        fund_tables.append(table)

    if not fund_tables:
        logger.info("No index movement beyond threshold today. Sending index update email...")

    result = report.build_report(quotes, triggered, fund_tables, settings)
    mailer.send_mail(settings, result.subject, result.html, result.text)

    logger.info(
        "Run complete: %d index(es), %d fund table(s), %d fund fetch failure(s)",
        len(quotes), len(fund_tables), total_failed,
    )
    return result


def main() -> int:
    try:
        settings = config.load_settings()
    except MarketAlertError:
        configure_logging()
        logger.exception("Invalid configuration")
        return 1

    configure_logging(settings.log_level)
    try:
        run(settings)
    except MarketAlertError:
        logger.exception("Market alert run failed")
        return 1
    except Exception:
        logger.exception("Unexpected error during market alert run")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
