from src.chat import DeduplicationIndex


def test_add_reports_novelty_once():
    index = DeduplicationIndex()

    assert index.add("a") is True
    assert index.add("a") is False
    assert "a" in index
    assert len(index) == 1


def test_clear_starts_new_session():
    index = DeduplicationIndex(["a", "b"])

    index.clear()

    assert len(index) == 0
    assert index.add("a") is True
