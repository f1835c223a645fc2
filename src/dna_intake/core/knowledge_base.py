from __future__ import annotations

import json
from importlib import resources
from types import MappingProxyType
from typing import Iterator, Mapping

from dna_intake.core.models import ClinicalAnnotation, KnowledgeBaseManifest

SEARCH_RESULT_LIMIT = 10


def _kb_root():
    return resources.files("dna_intake.knowledge_base")


def load_manifest() -> KnowledgeBaseManifest:
    manifest_path = _kb_root() / "kb_manifest.json"
    data = json.loads(manifest_path.read_text(encoding="utf-8"))
    return KnowledgeBaseManifest(**data)


class KnowledgeBase:
    """Read-only rsid -> annotation lookup, built once and shared."""

    def __init__(self, annotations: Mapping[str, ClinicalAnnotation], kb_version: str = "unversioned") -> None:
        self._annotations = MappingProxyType(dict(annotations))
        self.kb_version = kb_version

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, dict], kb_version: str = "unversioned") -> "KnowledgeBase":
        return cls(
            {rsid: ClinicalAnnotation(**fields) for rsid, fields in mapping.items()},
            kb_version=kb_version,
        )

    def get(self, rsid: str) -> ClinicalAnnotation | None:
        return self._annotations.get(rsid)

    def __contains__(self, rsid: object) -> bool:
        return rsid in self._annotations

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self) -> Iterator[str]:
        return iter(self._annotations)

    def items(self):
        return self._annotations.items()

    def search(self, query: str, limit: int = SEARCH_RESULT_LIMIT) -> list[str]:
        """Return rsids whose id, gene or phenotype matches ``query``.

        Matching is case-insensitive substring matching. A query without the
        ``rs`` prefix is also tried with it, so ``"1801133"`` finds
        ``rs1801133``. Queries shorter than two characters match nothing.
        """
        needle = query.strip().lower()
        if len(needle) < 2:
            return []
        prefixed = needle if needle.startswith("rs") else f"rs{needle}"

        matches: list[str] = []
        for rsid, annotation in self._annotations.items():
            rsid_lower = rsid.lower()
            if needle in rsid_lower or prefixed in rsid_lower:
                matches.append(rsid)
            elif annotation.gene_name and needle in annotation.gene_name.lower():
                matches.append(rsid)
            elif annotation.phenotype and needle in annotation.phenotype.lower():
                matches.append(rsid)
            if len(matches) >= limit:
                break
        return matches


def _unique_keys(annotation_file: str):
    def hook(pairs: list[tuple[str, object]]) -> dict:
        data: dict = {}
        for key, value in pairs:
            if key in data:
                raise ValueError(f"Duplicate knowledge base entry for {key} in {annotation_file}.")
            data[key] = value
        return data

    return hook


def load_knowledge_base(manifest: KnowledgeBaseManifest | None = None) -> KnowledgeBase:
    manifest = manifest or load_manifest()
    annotations: dict[str, ClinicalAnnotation] = {}
    for annotation_file in manifest.annotation_files:
        annotation_path = _kb_root() / "annotations" / annotation_file
        data = json.loads(
            annotation_path.read_text(encoding="utf-8"),
            object_pairs_hook=_unique_keys(annotation_file),
        )
        for rsid, fields in data.items():
            if rsid in annotations:
                raise ValueError(f"Duplicate knowledge base entry for {rsid} in {annotation_file}.")
            annotations[rsid] = ClinicalAnnotation(**fields)
    return KnowledgeBase(annotations, kb_version=manifest.kb_version)
