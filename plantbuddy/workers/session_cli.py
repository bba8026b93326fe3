from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging

from infrastructure.remote import InMemoryStateClient, RemoteStateClient, SupabaseStateClient
from plantbuddy.config import AppConfig, load_config, setup_logging
from plantbuddy.domain.exceptions import ConfigurationError
from plantbuddy.enums import SessionEvent
from plantbuddy.schemas.session import UIStateSnapshot
from plantbuddy.services.session_controller import SessionController

logger = logging.getLogger(__name__)


def build_client(config: AppConfig, simulate: bool = False) -> RemoteStateClient:
    """Pick the Supabase store, or a seeded in-memory one for --simulate."""
    if simulate:
        client = InMemoryStateClient(latency_s=0.05)
        client.seed(config.device_id, water_level=767, light_level=65, is_moist=True, is_button_pump=False)
        return client

    if not config.has_remote_credentials:
        raise ConfigurationError(
            "Set PLANTBUDDY_SUPABASE_URL and PLANTBUDDY_SUPABASE_KEY, or run with --simulate"
        )
    return SupabaseStateClient(
        config.supabase_url,
        config.supabase_key,
        table=config.state_table,
        http_timeout=config.http_timeout_s,
    )


def log_snapshot(event: SessionEvent, snapshot: UIStateSnapshot) -> None:
    logger.info(
        "[%s] water=%d%% light=%d%% (%s) soil=%s pump=%s",
        event.value,
        snapshot.water_level_percent,
        snapshot.light_intensity_percent,
        snapshot.light_mode,
        snapshot.soil_label,
        snapshot.pump_button_label,
    )


async def run_session(
    config: AppConfig,
    client: RemoteStateClient,
    *,
    duration_s: float | None = None,
    water_now: bool = False,
) -> int:
    """Run one session until ``duration_s`` elapses or the task is cancelled."""
    session = SessionController(client, config)
    session.subscribe(log_snapshot)

    async with session:
        if water_now:
            outcome = await session.request_pump_activation()
            logger.info("Water Now request: %s", outcome)

        if duration_s is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration_s)

        logger.info("Session status: %s", session.get_status())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run a headless controller session that logs every state change."""
    parser = argparse.ArgumentParser(prog="plantbuddy-session")
    parser.add_argument("--device-id", type=int, default=None, help="Device id to control (default: from env)")
    parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    parser.add_argument("--water-now", action="store_true", help="Request one pump activation at start")
    parser.add_argument("--simulate", action="store_true", help="Use an in-memory store instead of Supabase")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    config = load_config()
    if args.device_id is not None:
        config.device_id = args.device_id
    setup_logging(debug=args.debug or config.DEBUG or config.log_level.upper() == "DEBUG", log_file=config.log_file)

    try:
        client = build_client(config, simulate=args.simulate)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    logger.info("Session running for device %s (press Ctrl+C to stop)", config.device_id)
    try:
        return asyncio.run(run_session(config, client, duration_s=args.duration, water_now=args.water_now))
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        logger.info("Stopping session...")
        return 0
    finally:
        with contextlib.suppress(OSError):
            client.close()


if __name__ == "__main__":
    raise SystemExit(main())
