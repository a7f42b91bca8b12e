"""
Tests for review.py - unknown-skill review queue and decisions.
"""

import pytest
from datetime import datetime, timedelta, timezone

from bidmatch import review
from bidmatch.errors import ConflictError, NotFoundError, ValidationError
from bidmatch.repositories import InMemorySkillDictionaryRepository, InMemorySkillReviewQueueRepository
from bidmatch.review import ReviewUnknownSkillsUseCase, SkillReviewQueue, UnknownSkillItem

from conftest import FakeClock


@pytest.fixture
def queue(clock_2024):
    return SkillReviewQueue(clock=clock_2024)


@pytest.fixture
def dictionaries(clock_2024, sample_dictionary):
    repo = InMemorySkillDictionaryRepository(clock=clock_2024)
    repo.save(sample_dictionary)
    return repo


@pytest.fixture
def review_repo(clock_2024):
    return InMemorySkillReviewQueueRepository(clock=clock_2024)


@pytest.fixture
def use_case(review_repo, dictionaries):
    use_case = ReviewUnknownSkillsUseCase(review_repo, dictionaries)
    use_case.record_unknown_skills(["Vue", "nextjs"], detected_in="b1")
    return use_case


class TestQueue:
    """Test collecting unknown skills."""

    def test_add_unknown_skill(self, queue, clock_2024):
        """New names are normalized and start pending."""
        item = queue.add_unknown_skill("  Vue ", "b1")

        assert item.skill_name == "vue"
        assert item.status == "pending"
        assert item.frequency == 1
        assert item.detected_in == ["b1"]
        assert item.first_detected_at == clock_2024.now

    def test_repeat_sightings_counted(self, queue):
        """Seeing a name again bumps frequency and records each source once."""
        queue.add_unknown_skill("vue", "b1")
        queue.add_unknown_skill("VUE", "b1")
        queue.add_unknown_skill("vue", "b2")

        item = queue.get_item("vue")
        assert item.frequency == 3
        assert item.detected_in == ["b1", "b2"]
        assert len(queue) == 1

    def test_first_detected_kept(self):
        """Later sightings do not move the first-detected time."""
        clock = FakeClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        queue = SkillReviewQueue(clock=clock)
        queue.add_unknown_skill("vue", "b1")
        clock.now += timedelta(days=3)
        queue.add_unknown_skill("vue", "b2")

        assert queue.get_item("vue").first_detected_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, queue, name):
        """Blank names cannot be queued."""
        with pytest.raises(ValidationError):
            queue.add_unknown_skill(name, "b1")

    def test_get_queue_items_filters_by_status(self, queue):
        """Status filter returns only matching items."""
        queue.add_unknown_skill("vue", "b1")
        queue.add_unknown_skill("deno", "b1")
        queue.reject("deno", "not a skill we track")

        assert [i.skill_name for i in queue.get_queue_items()] == ["vue", "deno"]
        assert [i.skill_name for i in queue.get_queue_items("pending")] == ["vue"]
        assert [i.skill_name for i in queue.get_queue_items("rejected")] == ["deno"]

    def test_get_queue_items_returns_copies(self, queue):
        """Editing a returned item does not touch the queue."""
        queue.add_unknown_skill("vue", "b1")
        queue.get_queue_items()[0].detected_in.append("x")
        assert queue.get_item("vue").detected_in == ["b1"]

    def test_json_round_trip(self, queue, clock_2024):
        """Queue documents keep status, reason and order."""
        queue.add_unknown_skill("vue", "b1")
        queue.add_unknown_skill("deno", "b2")
        queue.reject("deno", "runtime, not a skill")

        restored = SkillReviewQueue.from_json(queue.to_json(), clock=clock_2024)

        assert restored.get_queue_items() == queue.get_queue_items()
        assert "reason" not in queue.to_json()["items"][0]

    def test_invalid_status_rejected(self):
        """Unknown status values fail to load."""
        with pytest.raises(ValidationError):
            UnknownSkillItem.from_json({
                "skillName": "vue", "firstDetectedAt": "2024-01-01T00:00:00Z", "status": "maybe",
            })


class TestQueueDecisions:
    """Test status transitions on the queue itself."""

    def test_approve_as_canonical(self, queue):
        """Approval marks the item and describes the decision."""
        queue.add_unknown_skill("vue", "b1")
        decision = queue.approve_as_canonical("Vue", "frontend")

        assert decision["decision"] == "canonical"
        assert decision["canonicalName"] == "vue"
        assert decision["category"] == "frontend"
        assert decision["approvedAt"] == "2024-03-01T12:00:00Z"
        assert queue.get_item("vue").status == "approved"

    def test_approve_as_variation(self, queue):
        """Variation approval normalizes the canonical name."""
        queue.add_unknown_skill("reactjs2", "b1")
        decision = queue.approve_as_variation("reactjs2", " React ")

        assert decision["decision"] == "variation"
        assert decision["canonicalName"] == "react"

    def test_approve_variation_needs_canonical(self, queue):
        """An empty canonical name is refused and the item stays pending."""
        queue.add_unknown_skill("vuejs", "b1")
        with pytest.raises(ValidationError):
            queue.approve_as_variation("vuejs", "  ")
        assert queue.get_item("vuejs").status == "pending"

    def test_reject_records_reason(self, queue):
        """Rejection stores the trimmed reason."""
        queue.add_unknown_skill("foo", "b1")
        decision = queue.reject("foo", "  typo ")

        assert decision == {"skillName": "foo", "reason": "typo", "rejectedAt": "2024-03-01T12:00:00Z"}
        assert queue.get_item("foo").reason == "typo"

    def test_reject_needs_reason(self, queue):
        """A blank reason is refused."""
        queue.add_unknown_skill("foo", "b1")
        with pytest.raises(ValidationError):
            queue.reject("foo", " ")

    def test_unknown_name(self, queue):
        """Deciding on a name not in the queue fails."""
        with pytest.raises(NotFoundError) as exc:
            queue.approve_as_canonical("vue", "frontend")
        assert "not found in queue" in str(exc.value)

    def test_decided_items_are_final(self, queue):
        """An item can only be decided once."""
        queue.add_unknown_skill("vue", "b1")
        queue.reject("vue", "not now")

        with pytest.raises(ConflictError) as exc:
            queue.approve_as_canonical("vue", "frontend")
        assert str(exc.value) == "Skill 'vue' has already been rejected"


class TestReviewUseCase:
    """Test review decisions applied to the dictionary."""

    def test_record_unknown_skills(self, use_case, review_repo):
        """Recorded names are persisted and counted."""
        assert use_case.record_unknown_skills(["vue", "svelte"], detected_in="b2") == 2

        queue = review_repo.get()
        assert queue.get_item("vue").frequency == 2
        assert queue.get_item("svelte").detected_in == ["b2"]

    def test_record_nothing(self, review_repo, dictionaries):
        """An empty batch leaves the queue alone."""
        use_case = ReviewUnknownSkillsUseCase(review_repo, dictionaries)
        assert use_case.record_unknown_skills([], detected_in="b1") == 0
        assert len(review_repo.get()) == 0

    def test_approve_as_canonical(self, use_case, review_repo, dictionaries):
        """Approval adds the skill under a new dictionary version."""
        result = use_case.approve_as_canonical("vue", "frontend")

        assert result["dictionaryVersion"] == "2024.2"
        assert result["decision"] == "canonical"
        current = dictionaries.get_current()
        assert current.version == "2024.2"
        assert current.get_canonical_skill("vue").category == "frontend"
        assert not dictionaries.get_version("2024.1").has_skill("vue")
        assert review_repo.get().get_item("vue").status == "approved"

    def test_approve_as_variation(self, use_case, review_repo, dictionaries):
        """Approval attaches the name to an existing canonical skill."""
        result = use_case.approve_as_variation("nextjs", "React")

        assert result["dictionaryVersion"] == "2024.2"
        assert dictionaries.get_current().map_to_canonical("nextjs") == "react"
        assert review_repo.get().get_item("nextjs").status == "approved"

    def test_approve_as_variation_unknown_canonical(self, use_case, review_repo, dictionaries):
        """A missing canonical skill fails and saves nothing."""
        with pytest.raises(NotFoundError) as exc:
            use_case.approve_as_variation("nextjs", "angular")

        assert str(exc.value) == "Canonical skill 'angular' not found in dictionary"
        assert [d.version for d in dictionaries.get_all_versions()] == ["2024.1"]
        assert review_repo.get().get_item("nextjs").status == "pending"

    def test_failed_dictionary_change_saves_nothing(self, use_case, review_repo, dictionaries):
        """A conflicting canonical approval leaves queue and dictionary untouched."""
        use_case.record_unknown_skills(["react"], detected_in="b3")
        with pytest.raises(ConflictError):
            use_case.approve_as_canonical("react", "frontend")
        with pytest.raises(ValidationError):
            use_case.approve_as_canonical("vue", "ui")

        assert len(dictionaries.get_all_versions()) == 1
        assert review_repo.get().get_item("react").status == "pending"
        assert review_repo.get().get_item("vue").status == "pending"

    def test_reject_skill(self, use_case, review_repo, dictionaries):
        """Rejection updates the queue only."""
        result = use_case.reject_skill("vue", "duplicate of an internal name")

        assert result["reason"] == "duplicate of an internal name"
        item = review_repo.get().get_item("vue")
        assert item.status == "rejected"
        assert item.reason == "duplicate of an internal name"
        assert len(dictionaries.get_all_versions()) == 1

    def test_successive_approvals(self, use_case, dictionaries):
        """Each approval produces its own version."""
        use_case.approve_as_canonical("vue", "frontend")
        use_case.approve_as_variation("nextjs", "react")
        assert [d.version for d in dictionaries.get_all_versions()] == ["2024.1", "2024.2", "2024.3"]

    def test_no_dictionary(self, review_repo, clock_2024):
        """Approvals need a stored dictionary."""
        use_case = ReviewUnknownSkillsUseCase(review_repo, InMemorySkillDictionaryRepository(clock=clock_2024))
        use_case.record_unknown_skills(["vue"], detected_in="b1")

        with pytest.raises(NotFoundError) as exc:
            use_case.approve_as_canonical("vue", "frontend")
        assert str(exc.value) == "No dictionary found"
        assert review_repo.get().get_item("vue").status == "pending"

    def test_approval_logged(self, use_case, monkeypatch):
        """Approvals go through the module logger."""
        calls = []
        monkeypatch.setattr(review.logger, "info", lambda message, **context: calls.append((message, context)))

        use_case.approve_as_canonical("vue", "frontend")

        assert calls == [("Approved unknown skill", {"skill": "vue", "decision": "canonical", "version": "2024.2"})]
