"""
Rewrites legacy media references on content records to canonical keys.

Two kinds of bad data exist in older rows: resolved ``/api/download?key=...``
URLs and native object-store URLs (often expired signed URLs). Both are
reduced to the ``uploads/...`` key they point at. Everything else is left
untouched.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from core.logger import logger
from database.models import MEDIA_COLUMNS
from storage.media_reference import normalize_reference


@dataclass
class ReferenceFix:
    table: str
    record_id: int
    column: str
    old_value: str
    new_value: str


@dataclass
class RepairReport:
    scanned: int = 0
    fixes: List[ReferenceFix] = field(default_factory=list)
    applied: bool = False

    @property
    def fixed(self) -> int:
        return len(self.fixes)

    def by_table(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for fix in self.fixes:
            counts[fix.table] = counts.get(fix.table, 0) + 1
        return counts


class ReferenceRepairService:
    """Service for canonicalizing stored media references."""

    @staticmethod
    def repair(
        db: Session,
        apply: bool = False,
        native_hosts: Optional[Iterable[str]] = None,
        models: Optional[dict] = None,
    ) -> RepairReport:
        """
        Scan every media column and collect (optionally apply) rewrites.

        Args:
            db: Database session
            apply: Write the canonical keys back when True; dry run otherwise
            native_hosts: Object-store hostnames for native URL detection
            models: Mapping of model -> media column names (defaults to all content models)

        Returns:
            RepairReport listing every rewrite
        """
        report = RepairReport(applied=apply)
        hosts = tuple(native_hosts) if native_hosts is not None else None

        for model, columns in (models or MEDIA_COLUMNS).items():
            for record in db.query(model).order_by(model.id).all():
                report.scanned += 1
                for column in columns:
                    value = getattr(record, column)
                    if not value:
                        continue
                    normalized = normalize_reference(value, hosts)
                    if not normalized.is_canonical or normalized.value == value:
                        continue
                    report.fixes.append(ReferenceFix(
                        table=model.__tablename__,
                        record_id=record.id,
                        column=column,
                        old_value=value,
                        new_value=normalized.value,
                    ))
                    if apply:
                        setattr(record, column, normalized.value)

        if apply and report.fixes:
            db.commit()

        logger.info(
            f"Media reference repair: scanned {report.scanned} records, "
            f"{report.fixed} references {'rewritten' if apply else 'to rewrite'}"
        )
        return report
