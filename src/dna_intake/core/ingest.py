from __future__ import annotations

import logging
import sqlite3

from pydantic import ValidationError

from dna_intake.core.db import Database
from dna_intake.core.knowledge_base import KnowledgeBase
from dna_intake.core.models import GeneticReport, IngestRequest, IngestResponse
from dna_intake.core.search import VariantQuery, query_variants
from dna_intake.core.utils import utc_now_iso


def _format_storage_error(exc: sqlite3.Error) -> str:
    message = str(exc).strip() or exc.__class__.__name__
    if isinstance(exc, sqlite3.OperationalError) and "locked" in message.lower():
        return f"Database timeout: {message}"[:500]
    return f"Failed to save genetic data: {message}"[:500]


class IngestionService:
    """Server side of the upload: stores one batch of raw variants per call.

    The first batch of the first chunk replaces everything previously stored
    for the user; every other batch appends. The final batch of the last chunk
    also writes a summary report, committed together with that batch.
    """

    def __init__(self, db: Database, kb: KnowledgeBase) -> None:
        self.db = db
        self.kb = kb

    def handle(self, user_id: str, payload: dict | IngestRequest) -> IngestResponse:
        if isinstance(payload, IngestRequest):
            request = payload
        else:
            try:
                request = IngestRequest.model_validate(payload)
            except ValidationError as exc:
                logging.warning("Rejected ingestion payload with %s validation errors.", exc.error_count())
                return IngestResponse(error=f"Invalid data format: {exc.error_count()} validation errors")

        meta = request.metadata
        uploaded_at = utc_now_iso()
        rows = [
            (user_id, variant.rsid, variant.genotype, meta.data_source, uploaded_at)
            for variant in request.variants
        ]

        try:
            if meta.is_first_batch():
                removed = self.db.delete_user_variants(user_id, commit=False)
                logging.info("Cleared %s previously stored variants before upload.", removed)
            saved = self.db.insert_variants(rows, commit=False)
            report_generated = meta.is_final_batch()
            if report_generated:
                self.finalize(user_id, meta.data_source, commit=False)
            self.db.commit()
        except sqlite3.Error as exc:
            self.db.rollback()
            logging.error(
                "Storing chunk %s/%s batch %s/%s failed: %s",
                meta.chunk_index,
                meta.total_chunks,
                meta.batch_index,
                meta.total_batches,
                exc,
            )
            return IngestResponse(error=_format_storage_error(exc))

        return IngestResponse(variants_saved=saved, report_generated=report_generated)

    def finalize(self, user_id: str, data_source: str, *, commit: bool = True) -> GeneticReport:
        rsids = self.db.get_user_rsids(user_id)
        stored = self.db.count_user_variants(user_id)
        annotated = 0
        clinically_relevant = 0
        for rsid in rsids:
            annotation = self.kb.get(rsid)
            if annotation is None:
                continue
            annotated += 1
            if annotation.is_pathogenic():
                clinically_relevant += 1

        report = self.db.add_report(
            user_id=user_id,
            data_source=data_source,
            stored_variants=stored,
            annotated_variants=annotated,
            clinically_relevant_variants=clinically_relevant,
            kb_version=self.kb.kb_version,
            commit=commit,
        )
        logging.info(
            "Generated report: %s variants stored, %s annotated, %s clinically relevant.",
            stored,
            annotated,
            clinically_relevant,
        )
        return GeneticReport(**{key: value for key, value in report.items() if key != "id"})

    def delete_user_variants(self, user_id: str) -> int:
        removed = self.db.delete_user_variants(user_id)
        logging.info("Removed %s stored variants.", removed)
        return removed

    def search_user_variants(self, user_id: str, query: VariantQuery) -> list[dict]:
        return query_variants(self.db.get_user_variants(user_id), self.kb, query)
