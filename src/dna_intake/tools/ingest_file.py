from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from dna_intake.constants import APP_NAME, DB_FILENAME, LOG_FILENAME
from dna_intake.core.db import Database
from dna_intake.core.exceptions import FileValidationError, UploadError
from dna_intake.core.importer import IngestOutcome, ingest_genetic_file
from dna_intake.core.ingest import IngestionService
from dna_intake.core.knowledge_base import KnowledgeBase, load_knowledge_base
from dna_intake.core.settings import IntakeSettings, load_settings, resolve_data_dir
from dna_intake.core.uploader import HttpBatchSubmitter, LocalBatchSubmitter


def _setup_logging(log_dir: Path, verbose: bool) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[logging.FileHandler(log_path), logging.StreamHandler(sys.stdout)],
    )


def _print_outcome(outcome: IngestOutcome) -> None:
    meta = outcome.parsed.metadata
    risk = outcome.risk
    print(
        f"Source: {meta.data_source}\n"
        f"Total variants: {meta.total_variants}\n"
        f"Annotated: {meta.annotated_variants}\n"
        f"Clinically relevant: {meta.clinically_relevant_variants}\n"
        f"Chromosomes: {', '.join(meta.chromosomes)}\n"
        f"High risk: {len(risk.high_risk_variants)} | "
        f"Drug response: {len(risk.drug_response_variants)} | "
        f"Carrier status: {len(risk.carrier_status)}"
    )
    for recommendation in risk.recommendations:
        print(f"  - {recommendation}")
    if outcome.upload is not None:
        upload = outcome.upload
        print(
            f"Saved {upload.variants_saved} of {upload.total_variants} variants "
            f"in {upload.total_chunks} chunk(s); report generated: {upload.report_generated}"
        )


async def _run(args: argparse.Namespace, settings: IntakeSettings, kb: KnowledgeBase, data_dir: Path) -> IngestOutcome:
    def on_chunk_complete(chunk_index: int, total_chunks: int) -> None:
        print(f"[{chunk_index}/{total_chunks}] chunk stored")

    common = dict(
        file_path=args.file,
        kb=kb,
        settings=settings,
        source=args.source,
        on_chunk_complete=on_chunk_complete,
    )
    if args.no_upload:
        return await ingest_genetic_file(submitter=None, **common)

    endpoint_url = args.endpoint or settings.endpoint_url
    if endpoint_url:
        async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
            submitter = HttpBatchSubmitter(client, endpoint_url)
            return await ingest_genetic_file(submitter=submitter, **common)

    db = Database(args.db or data_dir / DB_FILENAME)
    try:
        submitter = LocalBatchSubmitter(IngestionService(db, kb), args.user_id)
        return await ingest_genetic_file(submitter=submitter, **common)
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=f"{APP_NAME}: validate, annotate and upload a raw genotype export.")
    parser.add_argument("file", type=Path, help="Path to a 23andMe-style raw data file (.txt, .tsv, .raw)")
    parser.add_argument("--source", help="Data source label (default from settings, usually 23andme)")
    parser.add_argument("--user-id", default="local", help="Owner of the stored variants in the local store")
    parser.add_argument("--db", type=Path, help="Local sqlite store (default: <data_dir>/dna_intake.sqlite3)")
    parser.add_argument("--endpoint", help="Ingestion endpoint URL; overrides the local store")
    parser.add_argument("--no-upload", action="store_true", help="Only validate, annotate and assess")
    parser.add_argument("--verbose", action="store_true", help="Log skipped lines and retries")
    args = parser.parse_args(argv)

    settings, _ = load_settings()
    data_dir = resolve_data_dir(settings)
    _setup_logging(data_dir / "logs", args.verbose)

    args.file = args.file.expanduser().resolve()
    kb = load_knowledge_base()

    try:
        outcome = asyncio.run(_run(args, settings, kb, data_dir))
    except FileValidationError as exc:
        print(f"File rejected: {exc}")
        return 2
    except UploadError as exc:
        print(f"Upload failed: {exc}")
        return 1

    _print_outcome(outcome)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
