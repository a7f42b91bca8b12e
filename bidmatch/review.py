"""
Review queue for skills the dictionary does not know yet.

Unknown names found while canonicalizing bid profiles are collected here
with a detection count and the bids they came from. A reviewer then
approves each one as a new canonical skill, approves it as a variation of
an existing one, or rejects it. Approvals produce a new dictionary version.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .dictionary import Clock
from .errors import ConflictError, NotFoundError, ValidationError
from .logger import get_logger
from .normalize import format_timestamp, normalize_skill_name, parse_timestamp, utc_now

logger = get_logger()

REVIEW_STATUSES = ("pending", "approved", "rejected")


@dataclass
class UnknownSkillItem:
    skill_name: str
    first_detected_at: datetime
    frequency: int = 1
    detected_in: List[str] = field(default_factory=list)
    status: str = "pending"
    reason: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UnknownSkillItem":
        status = data.get("status", "pending")
        if status not in REVIEW_STATUSES:
            raise ValidationError(f"Invalid review status: {status!r}")
        return cls(
            skill_name=normalize_skill_name(data["skillName"]),
            first_detected_at=parse_timestamp(data["firstDetectedAt"]),
            frequency=int(data.get("frequency", 1)),
            detected_in=list(data.get("detectedIn", [])),
            status=status,
            reason=data.get("reason"),
        )

    def to_json(self) -> Dict[str, Any]:
        data = {
            "skillName": self.skill_name,
            "frequency": self.frequency,
            "firstDetectedAt": format_timestamp(self.first_detected_at),
            "detectedIn": list(self.detected_in),
            "status": self.status,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


class SkillReviewQueue:
    """Unknown skills keyed by normalized name, in first-detected order."""

    def __init__(self, items: Optional[Dict[str, UnknownSkillItem]] = None, clock: Optional[Clock] = None):
        self._items: Dict[str, UnknownSkillItem] = items or {}
        self._clock = clock or utc_now

    @classmethod
    def from_json(cls, doc: Dict[str, Any], clock: Optional[Clock] = None) -> "SkillReviewQueue":
        items = {}
        for entry in doc.get("items", []):
            item = UnknownSkillItem.from_json(entry)
            items[item.skill_name] = item
        return cls(items, clock=clock)

    def to_json(self) -> Dict[str, Any]:
        return {"items": [item.to_json() for item in self._items.values()]}

    def __len__(self) -> int:
        return len(self._items)

    def add_unknown_skill(self, skill_name: str, detected_in: str) -> UnknownSkillItem:
        """
        Record one sighting of an unknown skill.

        A name already queued gets its frequency bumped and the source added
        once. Decided items are still counted, but keep their status.
        """
        normalized = normalize_skill_name(skill_name or "")
        if not normalized:
            raise ValidationError("Skill name cannot be empty")

        item = self._items.get(normalized)
        if item is None:
            item = UnknownSkillItem(normalized, self._clock(), detected_in=[detected_in])
            self._items[normalized] = item
        else:
            item.frequency += 1
            if detected_in not in item.detected_in:
                item.detected_in.append(detected_in)
        return item

    def get_queue_items(self, status: Optional[str] = None) -> List[UnknownSkillItem]:
        return [
            UnknownSkillItem(
                item.skill_name,
                item.first_detected_at,
                item.frequency,
                list(item.detected_in),
                item.status,
                item.reason,
            )
            for item in self._items.values()
            if status is None or item.status == status
        ]

    def get_item(self, skill_name: str) -> Optional[UnknownSkillItem]:
        return self._items.get(normalize_skill_name(skill_name))

    def has_skill(self, skill_name: str) -> bool:
        return normalize_skill_name(skill_name) in self._items

    def approve_as_canonical(self, skill_name: str, category: str) -> Dict[str, Any]:
        item = self._pending(skill_name)
        item.status = "approved"
        return {
            "skillName": item.skill_name,
            "decision": "canonical",
            "canonicalName": item.skill_name,
            "category": category,
            "approvedAt": format_timestamp(self._clock()),
        }

    def approve_as_variation(self, skill_name: str, canonical_name: str) -> Dict[str, Any]:
        canonical = normalize_skill_name(canonical_name or "")
        if not canonical:
            raise ValidationError("Canonical name cannot be empty")
        item = self._pending(skill_name)
        item.status = "approved"
        return {
            "skillName": item.skill_name,
            "decision": "variation",
            "canonicalName": canonical,
            "approvedAt": format_timestamp(self._clock()),
        }

    def reject(self, skill_name: str, reason: str) -> Dict[str, Any]:
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason cannot be empty")
        item = self._pending(skill_name)
        item.status = "rejected"
        item.reason = reason.strip()
        return {
            "skillName": item.skill_name,
            "reason": item.reason,
            "rejectedAt": format_timestamp(self._clock()),
        }

    def _pending(self, skill_name: str) -> UnknownSkillItem:
        normalized = normalize_skill_name(skill_name or "")
        item = self._items.get(normalized)
        if item is None:
            raise NotFoundError(f"Unknown skill '{normalized}' not found in queue")
        if item.status != "pending":
            raise ConflictError(f"Skill '{normalized}' has already been {item.status}")
        return item


class ReviewUnknownSkillsUseCase:
    """
    Queue unknown skills and apply review decisions to the dictionary.

    Approvals load the current dictionary, derive the next version, apply
    the change and save both the dictionary and the queue. Nothing is saved
    when the dictionary change fails. Domain errors propagate.
    """

    def __init__(self, review_repository, dictionary_repository):
        self.review_repository = review_repository
        self.dictionary_repository = dictionary_repository

    def record_unknown_skills(self, skill_names: Iterable[str], detected_in: str) -> int:
        queue = self.review_repository.get()
        count = 0
        for name in skill_names:
            queue.add_unknown_skill(name, detected_in)
            count += 1
        if count:
            self.review_repository.save(queue)
            logger.info("Queued unknown skills for review", source=detected_in, count=count)
        return count

    def get_queue_items(self, status: Optional[str] = None) -> List[UnknownSkillItem]:
        return self.review_repository.get().get_queue_items(status)

    def approve_as_canonical(self, skill_name: str, category: str) -> Dict[str, Any]:
        queue = self.review_repository.get()
        decision = queue.approve_as_canonical(skill_name, category)

        updated = self._current().with_incremented_version()
        updated.add_canonical_skill(decision["canonicalName"], category)
        return self._commit(queue, updated, decision)

    def approve_as_variation(self, skill_name: str, canonical_name: str) -> Dict[str, Any]:
        queue = self.review_repository.get()
        current = self._current()
        if current.get_canonical_skill(canonical_name) is None:
            raise NotFoundError(
                f"Canonical skill '{normalize_skill_name(canonical_name)}' not found in dictionary"
            )
        decision = queue.approve_as_variation(skill_name, canonical_name)

        updated = current.with_incremented_version()
        updated.add_skill_variation(decision["skillName"], decision["canonicalName"])
        return self._commit(queue, updated, decision)

    def reject_skill(self, skill_name: str, reason: str) -> Dict[str, Any]:
        queue = self.review_repository.get()
        decision = queue.reject(skill_name, reason)
        self.review_repository.save(queue)
        logger.info("Rejected unknown skill", skill=decision["skillName"], reason=decision["reason"])
        return decision

    def _current(self):
        dictionary = self.dictionary_repository.get_current()
        if dictionary is None:
            raise NotFoundError("No dictionary found")
        return dictionary

    def _commit(self, queue: SkillReviewQueue, dictionary, decision: Dict[str, Any]) -> Dict[str, Any]:
        self.dictionary_repository.save(dictionary.freeze())
        self.review_repository.save(queue)
        logger.info(
            "Approved unknown skill",
            skill=decision["skillName"],
            decision=decision["decision"],
            version=dictionary.version,
        )
        return dict(decision, dictionaryVersion=dictionary.version)
