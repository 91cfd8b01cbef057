"""Sequential admission pipeline that prices and reserves budget per scenario."""
import asyncio
import logging
from decimal import Decimal
from typing import Callable, Mapping

import httpx

from src.estimation.estimator import BaseEstimator, EstimatorError
from src.estimation.ledger import ShadowLedger
from src.estimation.models import AdmissionReport
from src.estimation.settings import EstimationSettings
from src.scenario.models import Scenario, ScenarioStatus


logger = logging.getLogger(__name__)

ESTIMATION_FAILED_REASON = "Cost estimation failed"

_TARGET_STATUSES = (ScenarioStatus.PENDING, ScenarioStatus.FAIL)


def insufficient_funds_reason(balance: Decimal, required: Decimal) -> str:
    return f"Insufficient funds (balance: {balance:.2f} < required: {required:.2f})"


class AdmissionPipeline:
    """Prices PENDING/FAIL scenarios in queue order against a shadow ledger.

    Later scenarios depend on the speculative debits of earlier ones, so the
    scenarios are processed strictly one at a time under a lock. By default
    the first rejection aborts the rest of the run and later scenarios keep
    their prior status.

    Attributes:
        is_running: Whether a run is currently in flight.
    """

    def __init__(
        self,
        estimator: BaseEstimator,
        settings: EstimationSettings | None = None,
    ):
        """Initialize the pipeline.

        Args:
            estimator: Prices individual scenarios.
            settings: Admission configuration.
        """
        self._estimator = estimator
        self._settings = settings or EstimationSettings()
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(
        self,
        scenarios: list[Scenario],
        balances: Mapping[str, Decimal | int | float | str],
        refusal: Callable[[], str | None] | None = None,
    ) -> AdmissionReport:
        """Estimate and admit every PENDING or FAIL scenario.

        Steps per scenario:
        1. Move to CALCULATING
        2. Ask the estimator for a quote
        3. Reject with FAIL if the shadow balance cannot cover it
        4. Otherwise debit the shadow ledger and move to READY

        Args:
            scenarios: The queue, mutated in place.
            balances: Live ``{user_id: balance}`` snapshot seeding the ledger.
            refusal: Checked once the lock is held; a returned reason refuses
                the run without touching any scenario.

        Returns:
            AdmissionReport describing what happened to each target.
        """
        async with self._lock:
            reason = refusal() if refusal else None
            if reason:
                logger.warning(f"Estimation refused: {reason}")
                return AdmissionReport(refused_reason=reason)

            ledger = ShadowLedger(balances)
            report = AdmissionReport()
            targets = [s for s in scenarios if s.status in _TARGET_STATUSES]

            if not targets:
                report.remaining_balances = ledger.snapshot()
                return report

            logger.info(f"Estimating {len(targets)} scenarios")

            for index, scenario in enumerate(targets):
                if report.aborted:
                    report.untouched.extend(s.id for s in targets[index:])
                    break

                # Removed or regenerated while we were suspended
                if scenario.status not in _TARGET_STATUSES or not any(
                    s is scenario for s in scenarios
                ):
                    continue

                admitted = await self._admit(scenario, ledger)
                if admitted:
                    report.admitted.append(scenario.id)
                else:
                    report.rejected.append(scenario.id)
                    if self._settings.stop_on_rejection:
                        report.aborted = True

            report.remaining_balances = ledger.snapshot()

        logger.info(
            f"Estimation finished: {len(report.admitted)} admitted, "
            f"{len(report.rejected)} rejected, {len(report.untouched)} untouched"
        )
        return report

    async def _admit(self, scenario: Scenario, ledger: ShadowLedger) -> bool:
        """Price one scenario and apply the admission decision."""
        scenario.status = ScenarioStatus.CALCULATING
        scenario.fail_reason = None
        scenario.cost = Decimal("0")

        try:
            quote = await self._estimator.estimate(scenario)
        except (EstimatorError, httpx.HTTPError) as e:
            logger.warning(f"Estimator failed for scenario #{scenario.id}: {e}")
            scenario.status = ScenarioStatus.FAIL
            scenario.cost = Decimal("0")
            scenario.fail_reason = ESTIMATION_FAILED_REASON
            return False
        except Exception:
            # Leave it re-estimable rather than stuck in CALCULATING
            scenario.status = ScenarioStatus.PENDING
            raise

        balance = ledger.balance(scenario.user_id)
        if not ledger.can_afford(scenario.user_id, quote.cost):
            logger.warning(
                f"Scenario #{scenario.id} rejected: {quote.cost:.2f} exceeds "
                f"{scenario.user_id} balance {balance:.2f}"
            )
            scenario.status = ScenarioStatus.FAIL
            scenario.cost = quote.cost
            scenario.fail_reason = insufficient_funds_reason(balance, quote.cost)
            return False

        ledger.debit(scenario.user_id, quote.cost)
        scenario.status = ScenarioStatus.READY
        scenario.cost = quote.cost
        return True
