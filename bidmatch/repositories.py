"""
Dictionary and bid stores.

Responsibilities:
- Persist and retrieve skill dictionary versions, bid profiles and the
  unknown-skill review queue.
- Keep a single "current" dictionary pointer (the last saved version).

Non-Responsibilities:
- No validation beyond what deserialization enforces.
- No merging or version policy.

Dictionaries are stored in serialized form and rebuilt on every read, so a
caller never holds an instance shared with the store. Rebuilt dictionaries
come back frozen.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import func

from .database import BidRow, DictionaryVersionRow, SkillReviewItemRow, get_session, init_database
from .dictionary import Clock, SkillDictionary
from .errors import ConflictError
from .normalize import format_timestamp, parse_version
from .profile import BidProfile
from .review import SkillReviewQueue, UnknownSkillItem


class InMemorySkillDictionaryRepository:
    def __init__(self, clock: Optional[Clock] = None):
        self._docs: Dict[str, dict] = {}
        self._current: Optional[str] = None
        self._clock = clock

    def save(self, dictionary: SkillDictionary) -> None:
        doc = dictionary.to_json()
        # Re-saving a version moves it to the end so it becomes current
        self._docs.pop(doc["version"], None)
        self._docs[doc["version"]] = doc
        self._current = doc["version"]

    def get_current(self) -> Optional[SkillDictionary]:
        if self._current is None:
            return None
        return self._load(self._docs[self._current])

    def get_version(self, version: str) -> Optional[SkillDictionary]:
        doc = self._docs.get(version)
        return self._load(doc) if doc is not None else None

    def get_all_versions(self) -> List[SkillDictionary]:
        versions = sorted(self._docs, key=parse_version)
        return [self._load(self._docs[v]) for v in versions]

    def _load(self, doc: dict) -> SkillDictionary:
        return SkillDictionary.from_json(doc, clock=self._clock).freeze()


class InMemoryBidRepository:
    def __init__(self, bids: Optional[List[BidProfile]] = None):
        self._bids: Dict[str, BidProfile] = {}
        for bid in bids or []:
            self.save(bid)

    def save(self, bid: BidProfile) -> None:
        self._bids[bid.id] = bid

    def add(self, bid: BidProfile) -> None:
        if bid.id in self._bids:
            raise ConflictError(f"Bid already exists: {bid.id}")
        self.save(bid)

    def find_by_id(self, bid_id: str) -> Optional[BidProfile]:
        return self._bids.get(bid_id)

    def find_all(self) -> List[BidProfile]:
        return list(self._bids.values())

    def delete(self, bid_id: str) -> bool:
        return self._bids.pop(bid_id, None) is not None


class SqlSkillDictionaryRepository:
    """SQLite-backed dictionary history."""

    def __init__(self, db_path: Path, clock: Optional[Clock] = None):
        self.db_path = db_path
        self._clock = clock
        init_database(db_path)

    def save(self, dictionary: SkillDictionary) -> None:
        doc = dictionary.to_json()
        session = get_session(self.db_path)
        try:
            next_seq = (session.query(func.max(DictionaryVersionRow.saved_seq)).scalar() or 0) + 1
            session.merge(DictionaryVersionRow(
                version=doc["version"],
                payload=json.dumps(doc, ensure_ascii=False),
                saved_seq=next_seq,
            ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_current(self) -> Optional[SkillDictionary]:
        session = get_session(self.db_path)
        try:
            row = session.query(DictionaryVersionRow).order_by(DictionaryVersionRow.saved_seq.desc()).first()
            return self._load(row.payload) if row else None
        finally:
            session.close()

    def get_version(self, version: str) -> Optional[SkillDictionary]:
        session = get_session(self.db_path)
        try:
            row = session.get(DictionaryVersionRow, version)
            return self._load(row.payload) if row else None
        finally:
            session.close()

    def get_all_versions(self) -> List[SkillDictionary]:
        session = get_session(self.db_path)
        try:
            rows = session.query(DictionaryVersionRow).all()
            rows.sort(key=lambda r: parse_version(r.version))
            return [self._load(r.payload) for r in rows]
        finally:
            session.close()

    def _load(self, payload: str) -> SkillDictionary:
        return SkillDictionary.from_json(json.loads(payload), clock=self._clock).freeze()


class SqlBidRepository:
    """SQLite-backed bid profiles, returned in insertion order."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        init_database(db_path)

    def save(self, bid: BidProfile) -> None:
        doc = bid.to_json()
        session = get_session(self.db_path)
        try:
            row = session.query(BidRow).filter_by(bid_id=bid.id).first()
            if row is None:
                row = BidRow(bid_id=bid.id)
                session.add(row)
            row.company = bid.company
            row.role = bid.role
            row.main_stacks = json.dumps(doc["mainStacks"], ensure_ascii=False)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def add(self, bid: BidProfile) -> None:
        """Insert a new bid; fails if the id is taken."""
        if self.find_by_id(bid.id) is not None:
            raise ConflictError(f"Bid already exists: {bid.id}")
        self.save(bid)

    def find_by_id(self, bid_id: str) -> Optional[BidProfile]:
        session = get_session(self.db_path)
        try:
            row = session.query(BidRow).filter_by(bid_id=bid_id).first()
            return self._to_domain(row) if row else None
        finally:
            session.close()

    def find_all(self) -> List[BidProfile]:
        session = get_session(self.db_path)
        try:
            return [self._to_domain(r) for r in session.query(BidRow).order_by(BidRow.pk).all()]
        finally:
            session.close()

    def delete(self, bid_id: str) -> bool:
        session = get_session(self.db_path)
        try:
            deleted = session.query(BidRow).filter_by(bid_id=bid_id).delete()
            session.commit()
            return deleted > 0
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _to_domain(row: BidRow) -> BidProfile:
        return BidProfile.from_json({
            "id": row.bid_id,
            "company": row.company,
            "role": row.role,
            "mainStacks": json.loads(row.main_stacks),
        })


class InMemorySkillReviewQueueRepository:
    def __init__(self, clock: Optional[Clock] = None):
        self._doc: dict = {"items": []}
        self._clock = clock

    def get(self) -> SkillReviewQueue:
        return SkillReviewQueue.from_json(self._doc, clock=self._clock)

    def save(self, queue: SkillReviewQueue) -> None:
        self._doc = queue.to_json()


class SqlSkillReviewQueueRepository:
    """SQLite-backed review queue, one row per unknown skill."""

    def __init__(self, db_path: Path, clock: Optional[Clock] = None):
        self.db_path = db_path
        self._clock = clock
        init_database(db_path)

    def get(self) -> SkillReviewQueue:
        session = get_session(self.db_path)
        try:
            loaded = []
            for row in session.query(SkillReviewItemRow).all():
                loaded.append(UnknownSkillItem.from_json({
                    "skillName": row.skill_name,
                    "frequency": row.frequency,
                    "firstDetectedAt": row.first_detected_at,
                    "detectedIn": json.loads(row.detected_in),
                    "status": row.status,
                    "reason": row.reason,
                }))
            loaded.sort(key=lambda item: item.first_detected_at)
            return SkillReviewQueue({item.skill_name: item for item in loaded}, clock=self._clock)
        finally:
            session.close()

    def save(self, queue: SkillReviewQueue) -> None:
        session = get_session(self.db_path)
        try:
            # Items are never removed from the queue, so upserting every row is enough
            for item in queue.get_queue_items():
                session.merge(SkillReviewItemRow(
                    skill_name=item.skill_name,
                    frequency=item.frequency,
                    first_detected_at=format_timestamp(item.first_detected_at),
                    detected_in=json.dumps(item.detected_in, ensure_ascii=False),
                    status=item.status,
                    reason=item.reason,
                ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
