# main.py
"""Main entry point for the RaidChain scenario console."""
import asyncio
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

from src.accounts import AccountBook, HttpAccountClient
from src.archive import ResultsArchive
from src.config.settings import Settings
from src.dashboard import NoticeBoard
from src.engine import ScenarioEngine
from src.estimation import AdmissionPipeline, HttpEstimator
from src.execution import (
    ExecutionStateMachine,
    HttpProgressSource,
    HttpRunner,
    ProgressChannel,
    RunnerError,
)
from src.scenario import ScenarioGenerator


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def create_data_dirs(settings: Settings) -> None:
    """Create the results directory if archiving is enabled."""
    if settings.archive.enabled:
        Path(settings.archive.data_dir).mkdir(parents=True, exist_ok=True)
        logger.info("Data directories verified")


def print_startup_banner(settings: Settings) -> None:
    """Print system startup banner."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.system.name}")
    logger.info(f"Backend: {settings.backend.base_url}")
    logger.info(f"Version: {settings.system.version}")
    logger.info("=" * 60)


def load_and_validate_config(config_path: Path = Path("config/settings.yaml")) -> Settings:
    """Load and validate configuration.

    Returns:
        Settings object loaded from YAML.

    Raises:
        SystemExit: If config file missing or YAML parsing fails.
    """
    load_dotenv()
    logger.info("✓ Loaded environment variables")

    if not config_path.exists():
        logger.error(f"{config_path} not found")
        sys.exit(1)

    try:
        settings = Settings.from_yaml(config_path)
        logger.info(f"✓ Settings loaded from {config_path}")
    except Exception as e:
        logger.error(f"Failed to parse {config_path}: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(settings.system.log_level.upper())
    create_data_dirs(settings)

    return settings


def initialize_engine(
    settings: Settings,
    client: httpx.AsyncClient,
    account_book: AccountBook,
) -> ScenarioEngine:
    """Wire the scenario engine to the backend.

    Args:
        settings: Loaded settings object.
        client: Shared HTTP client for the backend.
        account_book: Live user balances.

    Returns:
        ScenarioEngine instance.
    """
    generator = ScenarioGenerator(settings=settings.generator)
    pipeline = AdmissionPipeline(
        estimator=HttpEstimator(settings.backend, client),
        settings=settings.estimation,
    )
    archive = ResultsArchive(settings=settings.archive) if settings.execution.archive_results else None
    state_machine = ExecutionStateMachine(
        runner=HttpRunner(settings.backend, client),
        account_book=account_book,
        archive=archive,
        settings=settings.execution,
    )
    engine = ScenarioEngine(
        generator=generator,
        pipeline=pipeline,
        state_machine=state_machine,
        account_book=account_book,
        notice_board=NoticeBoard(max_notices=settings.dashboard.max_notices),
    )
    logger.info("✓ ScenarioEngine initialized")

    return engine


async def run_batch(
    settings: Settings,
    client: httpx.AsyncClient,
    engine: ScenarioEngine,
) -> None:
    """Submit READY scenarios and follow their progress until the batch completes."""
    try:
        submission = await engine.execute()
    except RunnerError as e:
        logger.error(f"Execution failed to start: {e}")
        return

    if not submission.accepted:
        logger.warning(f"Nothing submitted: {submission.reason}")
        return

    channel = ProgressChannel(maxsize=settings.execution.channel_maxsize)
    source = HttpProgressSource(settings.backend, client)

    async def feed() -> None:
        try:
            await source.stream_into(submission.execution_id, channel)
        finally:
            await channel.close()

    feeder = asyncio.create_task(feed())
    applied = await engine.consume(channel)
    await feeder

    logger.info(f"Batch {submission.execution_id} finished ({applied} events applied)")


def log_summary(engine: ScenarioEngine) -> None:
    summary = engine.summary
    counts = ", ".join(f"{status}={count}" for status, count in summary.by_status.items() if count)
    logger.info(f"Queue: {summary.total} scenarios ({counts or 'empty'})")
    logger.info(f"Reserved: {summary.reserved_cost:.2f} TKN, settled: {summary.settled_cost:.2f} TKN")


async def main() -> None:
    settings = load_and_validate_config()
    print_startup_banner(settings)

    if settings.sweep is None:
        logger.error("No sweep configured in settings.yaml")
        sys.exit(1)

    async with httpx.AsyncClient(
        base_url=settings.backend.base_url,
        timeout=settings.backend.timeout_seconds,
    ) as client:
        account_book = AccountBook()
        try:
            account_book.replace_all(await HttpAccountClient(settings.backend, client).fetch_users())
            logger.info(f"✓ Loaded {len(account_book.accounts)} accounts")
        except httpx.HTTPError as e:
            logger.error(f"Failed to load accounts: {e}")
            logger.error("Check RAIDCHAIN_BASE_URL in .env")
            sys.exit(1)

        engine = initialize_engine(settings, client, account_book)

        report = await engine.generate_and_estimate(settings.sweep)
        logger.info(
            f"Admission: {len(report.admitted)} admitted, {len(report.rejected)} rejected, "
            f"{len(report.untouched)} untouched"
        )

        if settings.execution.auto_execute:
            await run_batch(settings, client, engine)

        log_summary(engine)


if __name__ == "__main__":
    asyncio.run(main())
