import pytest

from faqdesk.faq import similarity


def test_identical_strings_score_one():
    assert similarity.score("horario de funcionamento", "horario de funcionamento") == 1.0


def test_score_ignores_word_order():
    assert similarity.score("loja horario", "horario loja") == 1.0


def test_score_is_jaccard_over_token_sets():
    # shared {reset, my, password} / union of five tokens
    assert similarity.score("reset my password", "reset my password now please") == pytest.approx(0.6)
    assert similarity.score("a b", "c d") == 0.0


def test_duplicate_tokens_count_once():
    assert similarity.score("faq faq faq", "faq") == 1.0


@pytest.mark.parametrize(("left", "right"), [("", ""), ("", "abc"), ("abc", "")])
def test_empty_inputs_never_score(left, right):
    assert similarity.score(left, right) == 0.0


def test_score_is_symmetric_and_bounded():
    left = "quanto custa a formatacao"
    right = "formatacao do computador custa quanto"
    value = similarity.score(left, right)
    assert value == similarity.score(right, left)
    assert 0.0 <= value <= 1.0
