from app.services.shuffler import FALLBACK_SEED, LCG, seed_from, shuffle


def test_seed_uses_fnv1a_over_text_form():
    assert seed_from("a") == 0xE40C292C
    assert seed_from("") == 0x811C9DC5
    assert seed_from(42) == seed_from("42")


def test_seed_is_never_zero(monkeypatch):
    monkeypatch.setattr("app.services.shuffler.FNV_OFFSET_BASIS", 0)
    assert seed_from("") == FALLBACK_SEED


def test_lcg_sequence():
    rng = LCG(0)
    assert rng.next() == 1013904223
    assert rng.next() == (1664525 * 1013904223 + 1013904223) % 2 ** 32


def test_shuffle_is_deterministic_for_same_seed():
    items = list(range(10))
    assert shuffle(items, 17) == shuffle(items, 17)
    assert shuffle(items, "17") == shuffle(items, 17)


def test_shuffle_differs_between_seeds():
    items = list(range(10))
    orders = {tuple(shuffle(items, seed)) for seed in range(1, 6)}
    assert len(orders) > 1


def test_shuffle_is_a_permutation_and_leaves_input_untouched():
    items = ["a", "b", "c", "d", "e", "f"]
    result = shuffle(items, 99)
    assert sorted(result) == sorted(items)
    assert items == ["a", "b", "c", "d", "e", "f"]


def test_shuffle_small_sequences():
    assert shuffle([], 1) == []
    assert shuffle(["only"], 1) == ["only"]
