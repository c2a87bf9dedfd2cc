"""Command line entry point for checking IPO allotment results."""

from __future__ import annotations

import argparse
import json
import logging
import time
from collections.abc import Mapping, MutableMapping, Sequence
from pathlib import Path

import yaml
from dotenv import load_dotenv

from ipocheck import excel_io
from ipocheck.config import Settings, load_settings
from ipocheck.exceptions import ConfigError, UnsupportedProvider
from ipocheck.models import CheckResult
from ipocheck.orchestrator import BulkCheckOrchestrator, summarize
from ipocheck.registry import get_checker, list_providers
from ipocheck.share_types import ShareType, format_share_type, parse_share_type
from ipocheck.utils.logging_setup import setup_logger

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_CHECK_FAILED = 4

DEFAULT_MAPPING: dict[str, str] = {
    "allotted": "C",
    "units": "D",
    "message": "E",
    "provider_id": "F",
}


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="YAML-Datei mit Einstellungen")
    parser.add_argument("--json", action="store_true", help="Ausgabe als JSON")
    parser.add_argument(
        "--verbose", action="store_true", help="Ausführliche Log-Ausgabe aktivieren"
    )


def _add_check_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--company", required=True, help="Firmenname der Emission")
    parser.add_argument(
        "--share-type",
        default=ShareType.ORDINARY.value,
        help="Anteilsart, z. B. ordinary, local, migrant_workers (Standard: ordinary)",
    )
    parser.add_argument(
        "--boid",
        action="append",
        default=[],
        help="BOID (16-stellig); mehrfach angeben für mehrere BOIDs",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ipocheck", description="IPO/FPO Zuteilungsergebnisse prüfen"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    providers = subparsers.add_parser("providers", help="Unterstützte Anbieter auflisten")
    _add_common_options(providers)

    scripts = subparsers.add_parser("scripts", help="Aktuelle Emissionen eines Anbieters")
    scripts.add_argument("provider", help="Anbieter-ID, z. B. nabil-invest")
    _add_common_options(scripts)

    check = subparsers.add_parser("check", help="BOIDs bei einem Anbieter prüfen")
    check.add_argument("provider", help="Anbieter-ID, z. B. nabil-invest")
    _add_check_options(check)
    check.add_argument("--excel", help="Pfad zur Excel-Arbeitsmappe mit BOIDs")
    check.add_argument("--sheet", help="Tabellenblatt-Name (Standard: aktives Blatt)")
    check.add_argument(
        "--start", type=int, default=2, help="Startzeile (1-basiert). Standard: 2."
    )
    check.add_argument("--end", type=int, help="Endzeile (1-basiert, inklusiv)")
    check.add_argument("--boid-col", default="A", help="Spalte mit BOID (Standard: A)")
    check.add_argument("--holder-col", default=None, help="Spalte mit Inhabername (optional)")
    check.add_argument(
        "--mapping-yaml",
        help="YAML mit Mapping zwischen Ergebnisfeldern und Spalten",
    )
    check.add_argument(
        "--dry-run",
        action="store_true",
        help="Nur Abruf, keine Schreiboperationen in die Arbeitsmappe",
    )
    _add_common_options(check)

    check_all = subparsers.add_parser("check-all", help="BOIDs bei mehreren Anbietern prüfen")
    _add_check_options(check_all)
    check_all.add_argument(
        "--provider",
        dest="providers",
        action="append",
        default=[],
        help="Anbieter-ID; mehrfach angeben, Standard: alle Anbieter",
    )
    _add_common_options(check_all)

    return parser


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    setup_logger(logging.DEBUG if verbose else logging.INFO)


def _validate_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    if not column:
        return None
    if not column.isalpha():
        raise ValueError(f"Ungültiger Spaltenwert: {column}")
    return column


def _load_mapping(path: str | None) -> dict[str, str]:
    mapping: MutableMapping[str, str] = dict(DEFAULT_MAPPING)
    if not path:
        return dict(mapping)

    mapping_path = Path(path)
    if not mapping_path.exists():
        raise FileNotFoundError(f"Mapping-Datei nicht gefunden: {mapping_path}")

    data = yaml.safe_load(mapping_path.read_text(encoding="utf-8"))
    if data is None:
        return dict(mapping)
    if not isinstance(data, Mapping):
        raise ValueError("Mapping YAML muss ein Dictionary enthalten")

    for key, value in data.items():
        if value is None:
            mapping.pop(str(key), None)
            continue
        str_value = _validate_column(str(value))
        if str_value is None:
            continue
        mapping[str(key)] = str_value

    return dict(mapping)


def _format_result(result: CheckResult, holder: str | None = None) -> str:
    if not result.success:
        status = "ERROR"
    elif result.allotted:
        status = f"ALLOTTED {result.units}" if result.units is not None else "ALLOTTED"
    else:
        status = "NOT ALLOTTED"
    label = f"{result.boid} ({holder})" if holder else result.boid
    return f"{label}\t{status}\t{result.message}"


def _emit_results(results: Sequence[CheckResult], as_json: bool) -> None:
    if as_json:
        print(json.dumps([result.to_dict() for result in results], indent=2))
        return
    for result in results:
        print(_format_result(result))


def _exit_code(results: Sequence[CheckResult]) -> int:
    return EXIT_CHECK_FAILED if any(not result.success for result in results) else EXIT_OK


def _log_summary(label: str, results: Sequence[CheckResult], start_time: float) -> None:
    summary = summarize(results)
    logger.info(
        "Verarbeitung abgeschlossen (%s): total=%s allotted=%s not_allotted=%s errors=%s "
        "duration=%.2fs",
        label,
        summary.total,
        summary.allotted,
        summary.not_allotted,
        summary.errors,
        time.perf_counter() - start_time,
    )


def _cmd_providers(args: argparse.Namespace) -> int:
    descriptors = list_providers()
    if args.json:
        print(json.dumps([descriptor.to_dict() for descriptor in descriptors], indent=2))
        return EXIT_OK
    for descriptor in descriptors:
        print(
            f"{descriptor.id}\t{descriptor.transport_family.value}\t"
            f"{descriptor.display_name}\t{descriptor.url}"
        )
    return EXIT_OK


def _cmd_scripts(args: argparse.Namespace, settings: Settings) -> int:
    checker = get_checker(args.provider, settings)
    scripts = checker.get_scripts()
    if args.json:
        payload = [
            {
                "raw_name": script.raw_name,
                "company_name": script.company_name,
                "share_type": script.share_type.value,
                "provider_value": script.provider_value,
            }
            for script in scripts
        ]
        print(json.dumps(payload, indent=2, default=str))
        return EXIT_OK
    if not scripts:
        logger.warning("Keine Emissionen bei %s gefunden", args.provider)
    for script in scripts:
        share_type = format_share_type(script.share_type)
        print(f"{script.raw_name}\t{share_type}\t{script.provider_value}")
    return EXIT_OK


def _cmd_check_excel(args: argparse.Namespace, settings: Settings) -> int:
    try:
        boid_column = _validate_column(args.boid_col)
        holder_column = _validate_column(args.holder_col)
        mapping = _load_mapping(args.mapping_yaml)
    except (ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return EXIT_USAGE
    if not boid_column:
        logger.error("Spalte für BOIDs darf nicht leer sein")
        return EXIT_USAGE

    checker = get_checker(args.provider, settings)
    try:
        rows = list(
            excel_io.iter_boid_rows(
                excel_path=args.excel,
                sheet=args.sheet,
                start=args.start,
                end=args.end,
                boid_col=boid_column,
                holder_col=holder_column,
            )
        )
    except (ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    start_time = time.perf_counter()
    results = checker.check_result_bulk(
        [row["boid"] for row in rows], args.company, parse_share_type(args.share_type)
    )

    if args.json:
        _emit_results(results, True)
    else:
        for row, result in zip(rows, results):
            print(_format_result(result, row.get("holder")))

    if not args.dry_run:
        for row, result in zip(rows, results):
            excel_io.write_result(
                excel_path=args.excel,
                sheet=args.sheet,
                row_index=row["index"],
                result=result,
                mapping=mapping,
            )
        excel_io.save(args.excel)

    _log_summary(args.provider, results, start_time)
    return _exit_code(results)


def _cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    if args.excel:
        if args.boid:
            logger.error("--boid und --excel können nicht kombiniert werden")
            return EXIT_USAGE
        return _cmd_check_excel(args, settings)
    if not args.boid:
        logger.error("Mindestens eine BOID (--boid) oder --excel angeben")
        return EXIT_USAGE

    checker = get_checker(args.provider, settings)
    start_time = time.perf_counter()
    results = checker.check_result_bulk(
        args.boid, args.company, parse_share_type(args.share_type)
    )
    _emit_results(results, args.json)
    _log_summary(args.provider, results, start_time)
    return _exit_code(results)


def _cmd_check_all(args: argparse.Namespace, settings: Settings) -> int:
    if not args.boid:
        logger.error("Mindestens eine BOID (--boid) angeben")
        return EXIT_USAGE

    orchestrator = BulkCheckOrchestrator(settings)
    start_time = time.perf_counter()
    by_provider = orchestrator.check_across_providers(
        args.boid,
        args.company,
        parse_share_type(args.share_type),
        args.providers or None,
    )

    if args.json:
        payload = {
            provider_id: [result.to_dict() for result in results]
            for provider_id, results in by_provider.items()
        }
        print(json.dumps(payload, indent=2))
    else:
        for provider_id, results in by_provider.items():
            print(f"[{provider_id}]")
            for result in results:
                print(_format_result(result))

    all_results = [result for results in by_provider.values() for result in results]
    _log_summary("alle Anbieter", all_results, start_time)
    return _exit_code(all_results)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    dotenv_path = Path(".env")
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)

    if args.command == "providers":
        return _cmd_providers(args)

    try:
        settings = load_settings(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        logger.error("Konfiguration ungültig: %s", exc)
        return EXIT_USAGE

    try:
        if args.command == "scripts":
            return _cmd_scripts(args, settings)
        if args.command == "check":
            return _cmd_check(args, settings)
        if args.command == "check-all":
            return _cmd_check_all(args, settings)
    except UnsupportedProvider as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    logger.error("Unbekannter Befehl: %s", args.command)
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
