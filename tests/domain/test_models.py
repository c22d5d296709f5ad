from datetime import datetime

import pytest

from mnemo.domain.errors import InvalidGrade, InvalidQuality, InvalidState, SubjectNotFound
from mnemo.domain.models import (
    Grade,
    MindMapNode,
    ReviewState,
    ScheduleResult,
    Subject,
    SubjectContext,
)

NOW = datetime(2024, 3, 10, 14, 0)


class TestGrade:
    def test_parse(self):
        assert Grade.parse("easy") is Grade.EASY
        assert Grade.parse("HARD") is Grade.HARD
        assert Grade.parse(Grade.MEDIUM) is Grade.MEDIUM

    def test_quality(self):
        assert [g.quality for g in (Grade.HARD, Grade.MEDIUM, Grade.EASY)] == [3, 4, 5]

    def test_unknown(self):
        with pytest.raises(InvalidGrade) as exc_info:
            Grade.parse("again")
        assert isinstance(exc_info.value, InvalidQuality)
        assert "again" in str(exc_info.value)


class TestReviewState:
    def test_initial_defaults(self):
        state = ReviewState.initial(NOW)
        assert state.ease_factor == 2.5
        assert state.repetitions == 0
        assert state.last_interval == 0
        assert state.next_review_at == datetime(2024, 3, 11, 14, 0)
        state.validate()

    def test_apply_schedules_from_now(self):
        state = ReviewState.initial(NOW)
        new = state.apply(ScheduleResult(interval=6, repetitions=2, ease_factor=2.7), NOW)
        assert new.next_review_at == datetime(2024, 3, 16, 14, 0)
        assert new.last_interval == 6
        assert new.repetitions == 2
        assert new.ease_factor == 2.7
        # Original untouched
        assert state.repetitions == 0

    def test_due_now_keeps_sm2_values(self):
        state = ReviewState(datetime(2024, 4, 1), ease_factor=2.1, repetitions=3, last_interval=12)
        reset = state.due_now(NOW)
        assert reset.next_review_at == NOW
        assert (reset.ease_factor, reset.repetitions, reset.last_interval) == (2.1, 3, 12)

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"repetitions": -1}, "repetitions"),
            ({"last_interval": -3}, "last_interval"),
            ({"repetitions": 2, "last_interval": 0}, "last_interval"),
            ({"ease_factor": 1.2}, "ease_factor"),
            ({"ease_factor": float("nan")}, "ease_factor"),
        ],
    )
    def test_validate_rejects_broken_invariants(self, kwargs, field):
        with pytest.raises(InvalidState) as exc_info:
            ReviewState(NOW, **kwargs).validate()
        assert exc_info.value.field == field

    def test_dict_round_trip(self):
        state = ReviewState(NOW, ease_factor=2.36, repetitions=4, last_interval=44)
        assert ReviewState.from_dict(state.to_dict()) == state

    def test_from_dict_does_not_coerce(self):
        data = {"next_review_at": NOW.isoformat(), "repetitions": 2.9, "last_interval": True}
        state = ReviewState.from_dict(data)

        assert state.repetitions == 2.9
        with pytest.raises(InvalidState) as exc_info:
            state.validate()
        assert exc_info.value.field == "repetitions"


class TestMindMapNode:
    def tree(self):
        return MindMapNode.from_dict(
            {
                "id": "root",
                "text": "Photosynthesis",
                "children": [
                    {"id": "a", "text": "Light reactions", "children": [{"id": "a1", "text": "ATP"}]},
                    {"id": "b", "text": "Calvin cycle"},
                ],
            }
        )

    def test_from_dict_builds_tree(self):
        root = self.tree()
        assert root.text == "Photosynthesis"
        assert [c.id for c in root.children] == ["a", "b"]
        assert root.children[0].children[0].text == "ATP"

    def test_iter_nodes_is_depth_first(self):
        assert [n.id for n in self.tree().iter_nodes()] == ["root", "a", "a1", "b"]
        assert self.tree().count() == 4

    def test_leaf_serializes_without_children(self):
        assert MindMapNode("x", "leaf").to_dict() == {"id": "x", "text": "leaf"}


class TestSubject:
    def test_next_review_at_follows_review_state(self):
        s = Subject(
            id="subj_1",
            title="Cells",
            mind_map=MindMapNode("n", "Cells"),
            review=ReviewState.initial(NOW),
            created_at=NOW,
        )
        assert s.next_review_at == s.review.next_review_at
        assert s.context is SubjectContext.OTHER

    def test_from_dict(self):
        s = Subject.from_dict(
            {
                "id": "subj_1",
                "title": "Cells",
                "context": "book",
                "created_at": "2024-03-01T09:00:00",
                "mind_map": {"id": "n", "text": "Cells"},
                "review": {"next_review_at": "2024-03-02T09:00:00"},
            }
        )
        assert s.context is SubjectContext.BOOK
        assert s.raw_notes == ""
        assert s.review.ease_factor == 2.5
        assert s.next_review_at == datetime(2024, 3, 2, 9, 0)


def test_subject_not_found_message():
    err = SubjectNotFound("subj_x")
    assert str(err) == "Subject not found: subj_x"
    assert isinstance(err, KeyError)
