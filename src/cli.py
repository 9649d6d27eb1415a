"""Command-line interface for reading data values from a Prophet server.

Loads the JSON configuration, registers one adapter per configured source,
requests the given data paths for a node and prints the merged records as
JSON.

Usage
-----
    dataeye --config config.json \
        --node slot:/DataTree/WestRegion/Team01/MRTU01 \
        --data slot:/DataTree/data/Haystack/hvac/temp/air/numeric/zoneTemp \
        --time-range today
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .adapters import get_adapter, log_adapter_status, register_adapter
from .adapters.prophet import ProphetAdapter
from .config.models import AppConfig, EnvSettings
from .domain.correlation import DataEyeClient
from .errors import DataEyeError
from .observability import setup_logging
from .utils.partial_results import format_failure_summary


def _init_from_config(config_path: Path) -> AppConfig:
    """Register one ProphetAdapter per configured source.

    Parameters
    ----------
    config_path: Path
        Filesystem path to the JSON configuration file.

    Returns
    -------
    AppConfig
        The loaded configuration.
    """
    cfg = AppConfig.load(config_path)
    for source_id, sc in cfg.sources.items():
        register_adapter(
            source_id,
            ProphetAdapter(
                sc.endpoint,
                path=sc.path,
                timeout=sc.timeout_seconds,
                headers=sc.headers,
            ),
        )
    log_adapter_status()
    return cfg


def _build_request(args: argparse.Namespace) -> Dict[str, Any]:
    request: Dict[str, Any] = {"nodeId": args.node, "data": args.data}
    if args.uid:
        request["uid"] = args.uid
    if args.tags:
        request["tags"] = args.tags
    if args.aggregation:
        request["aggregation"] = args.aggregation
    if args.time_range:
        request["timeRange"] = args.time_range
    if args.rollup:
        request["rollup"] = args.rollup
    return request


async def _run(args: argparse.Namespace, config_path: Path) -> int:
    cfg = _init_from_config(config_path)
    source_id = args.source or cfg.default_source
    if source_id is None:
        print("No Prophet sources configured", file=sys.stderr)
        return 2
    adapter = get_adapter(source_id)
    client = DataEyeClient(adapter)
    try:
        records, report = await client.get_data_values_with_report(
            [_build_request(args)]
        )
        output = [r.model_dump(mode="json") for r in records]
    except DataEyeError as exc:
        print(json.dumps(exc.to_details().model_dump(mode="json")), file=sys.stderr)
        return 1
    finally:
        if isinstance(adapter, ProphetAdapter):
            await adapter.aclose()

    print(json.dumps(output, indent=2))
    if report.has_failures:
        print(format_failure_summary(report), file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint for reading data values."""
    settings = EnvSettings()
    parser = argparse.ArgumentParser(description="DataEye Prophet client")
    parser.add_argument("--config", help="Path to JSON app config")
    parser.add_argument("--source", help="Configured source id to query")
    parser.add_argument("--node", required=True, help="Node slot path")
    parser.add_argument(
        "--data",
        action="append",
        required=True,
        help="Data path to read (repeatable)",
    )
    parser.add_argument("--uid", help="Identifier echoed back on the records")
    parser.add_argument("--tags", help="Comma-separated getValue tags")
    parser.add_argument("--aggregation", help="Aggregation (e.g., avg)")
    parser.add_argument(
        "--time-range", dest="time_range", help="Time range (e.g., today)"
    )
    parser.add_argument("--rollup", help="Rollup interval")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    args = parser.parse_args(argv)

    effective_level = args.log_level or (
        "DEBUG" if args.verbose > 0 else settings.log_level.upper()
    )
    setup_logging(effective_level)

    config_path = Path(args.config) if args.config else settings.config_path
    if config_path is None:
        parser.error("--config is required unless DATAEYE_CONFIG_PATH is set")
    sys.exit(asyncio.run(_run(args, config_path)))


if __name__ == "__main__":
    main()
