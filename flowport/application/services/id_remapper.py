"""
Id Remapper.

Regenerates colliding ids inside an import bundle and keeps every reference
to them consistent.

When an id of some kind is remapped (old -> new), the new value is written to:
1. the ``id`` of every bundle row of that kind
2. every declared reference field (Entity.REFERENCES) pointing at that kind
3. every string value inside a JSON blob field (Entity.JSON_FIELDS) that
   exactly equals the old id

Substrings are never touched, so an id that happens to appear inside
unrelated text is left alone.
"""

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Set
import json
import logging
import uuid

from flowport.domain.models.entities import Entity
from flowport.domain.models.export_bundle import ExportBundle
from flowport.domain.models.json_value import replace_strings

logger = logging.getLogger(__name__)


def _new_uuid() -> str:
    return str(uuid.uuid4())


def normalize_json_text(text: Optional[str]) -> Optional[str]:
    """
    Re-serialize JSON text in compact form.

    Formatting-only differences disappear; the content is unchanged.

    Raises:
        ValueError: text is not valid JSON
    """
    if text is None or text == "":
        return text
    return json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)


def rewrite_json_text(text: Optional[str], mapping: Dict[str, str]) -> Optional[str]:
    """
    Swap string values equal to a mapping key inside JSON text.

    Text that is not valid JSON is returned unchanged. Unmodified text keeps
    its original formatting.
    """
    if not text or not mapping or not isinstance(text, str):
        return text
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    rewritten = replace_strings(parsed, mapping)
    if rewritten == parsed:
        return text
    return json.dumps(rewritten, separators=(",", ":"), ensure_ascii=False)


class IdRemapper:
    """
    Collision remapping for one bundle.

    Mappings accumulate per reference kind for the whole import, so later
    categories can look up where an earlier id went.

    Usage:
        remapper = IdRemapper(bundle)
        existing = uow.chatflows.find_existing_ids(r.id for r in bundle.chatflows)
        remapper.remap_collisions(bundle.chatflows, existing)
        remapper.mapping(ReferenceKind.FLOW)  # {old_id: new_id}
    """

    def __init__(self, bundle: ExportBundle, id_factory: Callable[[], str] = _new_uuid):
        self.bundle = bundle
        self._id_factory = id_factory
        self._mappings: Dict[str, Dict[str, str]] = defaultdict(dict)
        self._taken: Set[str] = {row.id for row in bundle.all_rows()}

    def mapping(self, kind: str) -> Dict[str, str]:
        """Old -> new ids recorded so far for a kind (copy)."""
        return dict(self._mappings.get(kind, {}))

    def resolve(self, kind: str, old_id: str) -> str:
        return self._mappings.get(kind, {}).get(old_id, old_id)

    def remap_collisions(self, rows: List[Entity], existing_ids: Iterable[str]) -> Dict[str, str]:
        """
        Give every row whose id is in ``existing_ids`` a fresh id.

        Args:
            rows: Bundle rows of one kind
            existing_ids: Ids already present in the target store

        Returns:
            Old -> new mapping produced by this call
        """
        existing = set(existing_ids)
        if not rows or not existing:
            return {}

        kind = rows[0].KIND
        pairs: Dict[str, str] = {}
        for row in rows:
            if row.id in existing and row.id not in pairs:
                pairs[row.id] = self._fresh_id()
                logger.debug(f"Remapping colliding {kind} id {row.id} -> {pairs[row.id]}")

        if pairs:
            self.apply(kind, pairs)
            logger.info(f"Remapped {len(pairs)} colliding {kind} id(s)")
        return pairs

    def apply(self, kind: str, pairs: Dict[str, str]) -> None:
        """Rewrite ids, declared references and blob values across the bundle."""
        self._mappings[kind].update(pairs)
        for row in self.bundle.all_rows():
            if row.KIND == kind and row.id in pairs:
                row.id = pairs[row.id]
            for field_name, ref_kind in row.REFERENCES.items():
                if ref_kind != kind:
                    continue
                value = getattr(row, field_name)
                if value in pairs:
                    setattr(row, field_name, pairs[value])
            for field_name in row.JSON_FIELDS:
                setattr(row, field_name, rewrite_json_text(getattr(row, field_name), pairs))

    def _fresh_id(self) -> str:
        new_id = self._id_factory()
        while new_id in self._taken:
            new_id = self._id_factory()
        self._taken.add(new_id)
        return new_id
