import itertools
import random
from collections import Counter

from empire.services.games import CODE_ALPHABET, generate_session_code, names_match, normalize_name, shuffled


def test_normalize_title_cases_and_trims():
    assert normalize_name('  john q public ') == 'John Q Public'
    assert normalize_name('MARIE CURIE') == 'Marie Curie'
    assert normalize_name('albert   einstein') == 'Albert Einstein'


def test_normalize_blank_is_empty():
    assert normalize_name('   ') == ''
    assert normalize_name('') == ''
    assert normalize_name(None) == ''


def test_names_match_is_case_insensitive():
    assert names_match('Alice', 'alice')
    assert names_match(' ALICE ', 'alice')
    assert not names_match('Alice', 'Alicia')


def test_code_shape():
    rng = random.Random(3)
    for _ in range(200):
        code = generate_session_code(rng)
        assert len(code) == 6
        assert set(code) <= set(CODE_ALPHABET)


def test_alphabet_has_no_ambiguous_characters():
    for ch in '0O1I':
        assert ch not in CODE_ALPHABET


def test_code_length_is_configurable():
    assert len(generate_session_code(random.Random(1), length=8)) == 8


def test_shuffled_is_permutation_and_leaves_input_alone():
    items = ['a', 'b', 'c', 'd', 'e']
    out = shuffled(items, random.Random(5))
    assert sorted(out) == sorted(items)
    assert items == ['a', 'b', 'c', 'd', 'e']
    assert shuffled([], random.Random(5)) == []
    assert shuffled(['x'], random.Random(5)) == ['x']


class _ZeroRng:
    def __init__(self):
        self.bounds = []

    def randrange(self, stop):
        self.bounds.append(stop)
        return 0


def test_shuffled_swaps_from_last_index_down():
    rng = _ZeroRng()
    assert shuffled(['a', 'b', 'c'], rng) == ['b', 'c', 'a']
    # index i swaps with a draw from [0, i]
    assert rng.bounds == [3, 2]


def test_shuffled_is_roughly_uniform():
    rng = random.Random(0)
    counts = Counter(tuple(shuffled([1, 2, 3], rng)) for _ in range(6000))
    assert set(counts) == set(itertools.permutations([1, 2, 3]))
    for n in counts.values():
        assert 800 < n < 1200
