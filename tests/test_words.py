from imposter.services.game import words


def test_pick_returns_word_from_topic():
    for _ in range(20):
        assert words.pick('tech') in words.WORD_LISTS['tech']


def test_unknown_topic_falls_back_to_classic():
    assert words.pick('astronomy') in words.WORD_LISTS['classic']
    assert words.pick(None) in words.WORD_LISTS['classic']


def test_pick_is_an_independent_draw(monkeypatch):
    # No memory between calls: the same word can come back immediately
    monkeypatch.setattr(words.random, 'choice', lambda seq: seq[0])
    assert words.pick('food') == words.pick('food') == 'lasagna'


def test_normalize_topic():
    assert words.normalize_topic('  TECH ') == 'tech'
    assert words.normalize_topic('Disney') == 'disney'
    assert words.normalize_topic('nope') == 'classic'
    assert words.normalize_topic(None) == 'classic'


def test_topics_lists_catalog():
    assert words.topics() == ['classic', 'disney', 'tech', 'food']
