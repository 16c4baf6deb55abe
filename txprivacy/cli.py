"""Command line front end.

Usage:
    python -m txprivacy.cli tx <txid|url> [--json]
    python -m txprivacy.cli address <address|url> [--json]
    python -m txprivacy.cli cluster <address|url> [--json]

Exit codes: 0 success, 1 explorer API error, 2 invalid input or settings.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import signal
import sys
from typing import Optional

from pydantic import ValidationError

from txprivacy.analysis import (
    analyze_address,
    analyze_transaction,
    clean_input,
    detect_input_type,
    summary_sentiment,
)
from txprivacy.clustering import build_first_degree_cluster
from txprivacy.config import EngineConfig, NETWORKS, get_config, setup_logging
from txprivacy.errors import ApiError, ConfigError, OperationCancelled
from txprivacy.models import ClusterProgress, ScoringResult, Transaction
from txprivacy.screening import (
    OfacCheckResult,
    check_ofac,
    extract_tx_addresses,
    load_sanctions_list,
)
from txprivacy.utils import (
    EsploraAsyncClient,
    count_missing_prevouts,
    enrich_prevouts,
    needs_enrichment,
)

logger = logging.getLogger(__name__)

EXPECTED_INPUT = {"tx": "txid", "address": "address", "cluster": "address"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txprivacy", description="Bitcoin transaction and address privacy analysis"
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--network", choices=sorted(NETWORKS), help="Override TXPRIVACY_NETWORK"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("tx", help="Analyze a transaction").add_argument("target", help="txid or explorer URL")
    sub.add_parser("address", help="Analyze an address").add_argument(
        "target", help="Address or explorer URL"
    )
    sub.add_parser("cluster", help="Estimate the one-hop cluster of an address").add_argument(
        "target", help="Address or explorer URL"
    )
    return parser


def _screen(config: EngineConfig, addresses: list[str]) -> OfacCheckResult:
    if not config.ofac_list_path:
        return OfacCheckResult(checked=False)
    try:
        sanctions = load_sanctions_list(config.ofac_list_path)
    except (OSError, ValidationError) as e:
        raise ConfigError(f"Cannot read sanctions list {config.ofac_list_path}: {e}") from e
    return check_ofac(addresses, sanctions)


def _report(result: ScoringResult, ofac: OfacCheckResult) -> dict:
    report = result.to_dict()
    report["sentiment"] = summary_sentiment(result.grade, result.findings)
    report["ofac"] = dataclasses.asdict(ofac)
    return report


async def _enrich(
    client: EsploraAsyncClient,
    txs: list[Transaction],
    cancel_event: asyncio.Event | None = None,
) -> list[Transaction]:
    """Fill in prevouts when the backend omitted them."""
    if not needs_enrichment(txs):
        return txs
    logger.info(f"Backend returned no prevouts, rebuilding {count_missing_prevouts(txs)} inputs")
    enriched = await enrich_prevouts(txs, client.get_transaction, cancel_event=cancel_event)
    if enriched.failed_count:
        logger.warning(f"{enriched.failed_count} parent transactions could not be fetched")
    return enriched.txs


def _log_step(step_id: str, impact: Optional[int]) -> None:
    if impact is not None:
        logger.debug(f"{step_id}: {impact:+d}")


async def run_tx(client: EsploraAsyncClient, txid: str, config: EngineConfig) -> dict:
    tx = await client.get_transaction(txid)
    raw_hex = await client.get_tx_hex(txid)
    tx = (await _enrich(client, [tx]))[0]

    result = analyze_transaction(tx, raw_hex=raw_hex, on_step=_log_step)
    report = _report(result, _screen(config, extract_tx_addresses(tx)))
    report["txid"] = tx.txid
    return report


async def run_address(client: EsploraAsyncClient, address: str, config: EngineConfig) -> dict:
    info, txs, utxos = await asyncio.gather(
        client.get_address(address),
        client.get_address_txs(address),
        client.get_address_utxos(address),
    )
    txs = await _enrich(client, txs)
    result = analyze_address(info, utxos, txs, on_step=_log_step)
    report = _report(result, _screen(config, [address]))
    report["address"] = address
    return report


async def run_cluster(client: EsploraAsyncClient, address: str, config: EngineConfig) -> dict:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)

    def on_progress(progress: ClusterProgress) -> None:
        logger.info(f"[{progress.phase}] {progress.current}/{progress.total}")

    try:
        txs = await client.get_address_txs(address)
        txs = await _enrich(client, txs, cancel_event)
        cluster = await build_first_degree_cluster(
            address,
            txs,
            client,
            cancel_event=cancel_event,
            on_progress=on_progress,
            config=config,
        )
    finally:
        if sys.platform != "win32":
            loop.remove_signal_handler(signal.SIGINT)

    report = cluster.to_dict()
    report["target"] = address
    report["ofac"] = dataclasses.asdict(_screen(config, list(cluster.addresses)))
    return report


def format_report(command: str, report: dict) -> str:
    """Plain-text rendering of a report dict."""
    if command == "cluster":
        lines = [
            f"Cluster of {report['target']}: {report['size']} addresses"
            + (" (cancelled, partial)" if report["cancelled"] else ""),
            f"  {report['txs_analyzed']} transactions analyzed, "
            f"{report['coinjoin_tx_count']} CoinJoins skipped",
        ]
        lines.extend(f"  {addr}" for addr in report["addresses"])
    else:
        lines = [f"Grade {report['grade']}  score {report['score']}/100  ({report['sentiment']})"]
        for f in report["findings"]:
            lines.append(f"  [{f['severity']:>6}] {f['score_impact']:+4d}  {f['title']}")
            lines.append(f"           {f['description']}")

    ofac = report["ofac"]
    if ofac["checked"]:
        if ofac["sanctioned"]:
            lines.append(f"OFAC: SANCTIONED {', '.join(ofac['matched_addresses'])}")
        else:
            lines.append(f"OFAC: no match (list updated {ofac['last_updated']})")
    return "\n".join(lines)


async def _run(command: str, target: str, config: EngineConfig) -> dict:
    async with EsploraAsyncClient(config) as client:
        if command == "tx":
            return await run_tx(client, target, config)
        if command == "address":
            return await run_address(client, target, config)
        return await run_cluster(client, target, config)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
        if args.network:
            config = dataclasses.replace(config, network=args.network)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        level="DEBUG" if args.verbose else config.log_level,
        mode=config.log_mode,
        log_dir=config.log_dir,
    )

    target = clean_input(args.target)
    kind = detect_input_type(target, config.network)
    if kind != EXPECTED_INPUT[args.command]:
        print(
            f"Invalid input for '{args.command}': expected a {EXPECTED_INPUT[args.command]} "
            f"on {config.network}, got {args.target!r}",
            file=sys.stderr,
        )
        return 2

    try:
        report = asyncio.run(_run(args.command, target, config))
    except ApiError as e:
        logger.error(f"Explorer API error: {e}")
        return 1
    except OperationCancelled as e:
        logger.error(f"Cancelled: {e}")
        return 1
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print(format_report(args.command, report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
