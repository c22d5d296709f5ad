from datetime import datetime

import pytest
import yaml

from mnemo.application.review_service import ReviewService
from mnemo.domain.errors import InvalidState, SubjectNotFound
from mnemo.domain.models import MindMapNode, ReviewState, Subject, SubjectContext
from mnemo.infrastructure.repositories.yaml_store import YamlSubjectRepository

NOW = datetime(2024, 3, 10, 14, 0)


def make_subject(sid="subj_1", title="Cells"):
    return Subject(
        id=sid,
        title=title,
        context=SubjectContext.COURSE,
        raw_notes="Mitochondria is the powerhouse.\nÉnergie.",
        mind_map=MindMapNode("n", title, [MindMapNode("n1", "Organelles")]),
        review=ReviewState.initial(NOW),
        created_at=NOW,
    )


@pytest.fixture
def repo(tmp_path):
    return YamlSubjectRepository(tmp_path / "data" / "subjects.yaml")


@pytest.mark.asyncio
async def test_missing_file_is_empty(repo):
    assert await repo.list_subjects() == []
    assert not repo.path.exists()


@pytest.mark.asyncio
async def test_add_creates_file_and_reloads(repo):
    subject = make_subject()
    await repo.add_subject(subject)

    assert repo.path.exists()
    reloaded = YamlSubjectRepository(repo.path)
    assert await reloaded.get_subject("subj_1") == subject


@pytest.mark.asyncio
async def test_file_layout(repo):
    await repo.add_subject(make_subject())

    doc = yaml.safe_load(repo.path.read_text(encoding="utf-8"))
    assert doc["version"] == 1
    record = doc["subjects"][0]
    assert record["id"] == "subj_1"
    assert record["review"]["ease_factor"] == 2.5
    assert record["review"]["next_review_at"] == "2024-03-11T14:00:00"


@pytest.mark.asyncio
async def test_add_same_id_replaces(repo):
    await repo.add_subject(make_subject(title="Old"))
    await repo.add_subject(make_subject(title="New"))

    subjects = await repo.list_subjects()
    assert [s.title for s in subjects] == ["New"]


@pytest.mark.asyncio
async def test_update_schedule_only_touches_review(repo):
    await repo.add_subject(make_subject("a"))
    await repo.add_subject(make_subject("b"))
    state = ReviewState(datetime(2024, 3, 16, 14, 0), ease_factor=2.7, repetitions=2, last_interval=6)

    await repo.update_schedule("b", state)

    a = await repo.get_subject("a")
    b = await repo.get_subject("b")
    assert a.review == ReviewState.initial(NOW)
    assert b.review == state
    assert b.title == "Cells"


@pytest.mark.asyncio
async def test_delete(repo):
    await repo.add_subject(make_subject("a"))
    await repo.add_subject(make_subject("b"))

    await repo.delete_subject("a")

    assert [s.id for s in await repo.list_subjects()] == ["b"]
    with pytest.raises(SubjectNotFound):
        await repo.delete_subject("a")


@pytest.mark.asyncio
async def test_unknown_id(repo):
    await repo.add_subject(make_subject("a"))
    with pytest.raises(SubjectNotFound):
        await repo.get_subject("zzz")
    with pytest.raises(SubjectNotFound):
        await repo.update_schedule("zzz", ReviewState.initial(NOW))


@pytest.mark.asyncio
async def test_unreadable_record_is_skipped(repo, caplog):
    await repo.add_subject(make_subject("good"))
    doc = yaml.safe_load(repo.path.read_text(encoding="utf-8"))
    doc["subjects"].append({"id": "broken", "title": "No review block"})
    repo.path.write_text(yaml.safe_dump(doc), encoding="utf-8")

    subjects = await repo.list_subjects()

    assert [s.id for s in subjects] == ["good"]
    assert "broken" in caplog.text
    with pytest.raises(SubjectNotFound):
        await repo.get_subject("broken")


@pytest.mark.asyncio
async def test_no_temp_files_left_behind(repo):
    await repo.add_subject(make_subject("a"))
    await repo.update_schedule("a", ReviewState.initial(NOW))

    assert [p.name for p in repo.path.parent.iterdir()] == ["subjects.yaml"]


@pytest.mark.asyncio
async def test_rejects_non_mapping_document(repo):
    repo.path.parent.mkdir(parents=True)
    repo.path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        await repo.list_subjects()


@pytest.mark.asyncio
async def test_stored_numbers_are_not_coerced(repo):
    await repo.add_subject(make_subject("a"))
    doc = yaml.safe_load(repo.path.read_text(encoding="utf-8"))
    doc["subjects"][0]["review"].update(repetitions=2.9, last_interval=True)
    repo.path.write_text(yaml.safe_dump(doc), encoding="utf-8")

    state = (await repo.get_subject("a")).review

    assert state.repetitions == 2.9
    assert state.last_interval is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, value",
    [
        ("repetitions", 2.9),
        ("last_interval", True),
        ("ease_factor", "2.5"),
    ],
)
async def test_grading_corrupt_record_leaves_file_alone(repo, field, value):
    await repo.add_subject(make_subject("a"))
    doc = yaml.safe_load(repo.path.read_text(encoding="utf-8"))
    doc["subjects"][0]["review"][field] = value
    repo.path.write_text(yaml.safe_dump(doc), encoding="utf-8")
    before = repo.path.read_text(encoding="utf-8")

    service = ReviewService(repo, clock=lambda: NOW)
    with pytest.raises(InvalidState) as exc_info:
        await service.grade("a", "easy")

    assert exc_info.value.field == field
    assert repo.path.read_text(encoding="utf-8") == before
