"""Monitoring orchestration — scan the Red Bank store and report every borrower."""
from __future__ import annotations

import asyncio
import logging

from ..chains.cosmos import CosmosClient, RetryPolicy
from ..config import AppConfig
from ..models import CollateralizationResult, ScanReport
from ..money import format_ratio, format_usd
from ..oracles import MarsOracle
from ..protocols.redbank import RedBankAdapter
from ..protocols.redbank.parser import extract_borrower
from .scanner import StateScanner
from .scheduler import ScanScheduler

logger = logging.getLogger(__name__)


class Monitor:
    """Wires the chain client, oracle, adapter, scanner and scheduler."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

        retry = RetryPolicy(config.query.retries, config.query.retry_backoff_seconds)
        self._client = CosmosClient(config.chain, retry)
        self._oracle = MarsOracle(self._client, config.contracts.oracle)
        self._adapter = RedBankAdapter(
            self._client,
            self._oracle,
            config.contracts.red_bank,
            positions_page_size=config.scan.positions_page_size,
        )
        self._scanner = StateScanner(
            self._client,
            page_size=config.scan.page_size,
            max_pages=config.scan.max_pages,
        )
        self._scheduler = ScanScheduler(
            lambda: self._client.get_height(),
            self.scan_once,
            poll_interval_seconds=config.scheduler.poll_interval_seconds,
            scan_on_startup=config.scheduler.scan_on_startup,
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @staticmethod
    def _report(result: CollateralizationResult) -> None:
        logger.info(
            "User: %s · Total Debt: $%s · Total Collateral: $%s · "
            "Collateralization Ratio: %s",
            result.wallet,
            format_usd(result.total_debt_usd),
            format_usd(result.total_collateral_usd),
            format_ratio(result.ratio),
        )

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def check_wallet(self, wallet: str) -> CollateralizationResult:
        """Aggregate and report a single wallet."""
        height = None
        if self._config.query.pin_height:
            height = await self._client.get_height()
        result = await self._adapter.aggregate(wallet, height)
        self._report(result)
        return result

    async def scan_once(self, height: int | None = None) -> ScanReport:
        """Run one full pass over every collateral entry of the Red Bank store.

        A failing borrower is logged and skipped; a failing state page
        aborts the pass.
        """
        pin = None
        if self._config.query.pin_height:
            pin = height if height is not None else await self._client.get_height()

        red_bank = self._config.contracts.red_bank
        namespace = self._config.scan.collateral_namespace
        delay = self._config.scan.borrower_delay_seconds

        entries = processed = failed = 0
        logger.info(
            "Scanning %s (height %s)",
            red_bank, height if height is not None else "latest",
        )

        async for entry in self._scanner.scan(red_bank, height=pin):
            entries += 1
            wallet = extract_borrower(entry, namespace)
            if wallet is None:
                continue

            try:
                result = await self._adapter.aggregate(wallet, pin)
                self._report(result)
                processed += 1
            except Exception as e:
                failed += 1
                logger.error("Error processing %s: %s", wallet, e)

            await asyncio.sleep(delay)

        report = ScanReport(
            height=height,
            entries_scanned=entries,
            borrowers_processed=processed,
            borrowers_failed=failed,
        )
        logger.info(
            "Scan complete: %d entries, %d borrowers reported, %d failed",
            entries, processed, failed,
        )
        return report

    async def run_continuous(self) -> None:
        """Re-scan whenever the chain height advances."""
        await self._scheduler.run_forever()
