import pytest

from helpers.reactive import Computed, Ref


def test_ref_notifies_subscribers_on_change():
    ref = Ref(1)
    seen = []
    ref.subscribe(seen.append)

    assert ref.set(2) is True
    ref.value = 3

    assert seen == [2, 3]
    assert ref.value == 3


def test_ref_ignores_writes_of_the_same_value():
    ref = Ref("auto")
    seen = []
    ref.subscribe(seen.append)

    assert ref.set("auto") is False
    assert seen == []


def test_ref_unsubscribe_stops_notifications():
    ref = Ref(0)
    seen = []
    unsubscribe = ref.subscribe(seen.append)

    ref.set(1)
    unsubscribe()
    ref.set(2)

    assert seen == [1]


def test_computed_follows_its_dependencies():
    a = Ref(2)
    b = Ref(3)
    total = Computed(lambda: a.value + b.value, [a, b])

    assert total.value == 5
    a.set(10)
    assert total.value == 13
    b.set(0)
    assert total.value == 10


def test_computed_only_notifies_when_derived_value_changes():
    width = Ref(100)
    is_narrow = Computed(lambda: width.value < 768, [width])
    seen = []
    is_narrow.subscribe(seen.append)

    width.set(200)
    width.set(300)
    width.set(900)

    assert seen == [False]


def test_computed_chains_recompute_synchronously():
    base = Ref(1)
    doubled = Computed(lambda: base.value * 2, [base])
    quadrupled = Computed(lambda: doubled.value * 2, [doubled])

    base.set(5)

    assert doubled.value == 10
    assert quadrupled.value == 20


def test_computed_recomputes_only_after_an_input_changes():
    calls = []
    base = Ref(1)

    def double():
        calls.append(base.value)
        return base.value * 2

    derived = Computed(double, [base])
    assert derived.value == 2
    assert derived.value == 2
    assert calls == [1]

    base.set(4)
    assert calls == [1]
    assert derived.value == 8
    assert calls == [1, 4]


def test_unsubscribed_computed_stops_notifying():
    base = Ref(1)
    derived = Computed(lambda: base.value + 1, [base])
    seen = []
    unsubscribe = derived.subscribe(seen.append)

    base.set(2)
    unsubscribe()
    base.set(3)

    assert seen == [3]
    assert derived.value == 4


def test_siblings_are_fresh_inside_a_subscriber():
    base = Ref(0)
    parent = Computed(lambda: base.value % 3, [base])
    siblings = [Computed(lambda i=i: parent.value == i, [parent]) for i in range(3)]
    observed = []
    siblings[1].subscribe(lambda _: observed.append([s.value for s in siblings]))

    base.set(1)
    base.set(2)

    assert observed == [[False, True, False], [False, False, True]]


def test_failing_subscriber_leaves_values_current():
    base = Ref(1)
    derived = Computed(lambda: base.value * 10, [base])

    def explode(_):
        raise RuntimeError("subscriber failed")

    base.subscribe(explode)
    late = []
    derived.subscribe(late.append)

    with pytest.raises(RuntimeError):
        base.set(2)

    assert late == []
    assert derived.value == 20
