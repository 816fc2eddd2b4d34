"""Unit tests for Flux value, history, revert and disposal behavior."""

import pytest

from fluxstate import DisposedError, Flux, HistoryIndexError


@pytest.mark.unit
def test_flux_exposes_initial_value_and_history():
    """A new Flux holds its initial value as the only history entry."""
    flux = Flux(0)

    assert flux.value == 0
    assert flux.history == (0,)
    assert not flux.disposed


@pytest.mark.unit
def test_flux_set_appends_to_history_in_call_order():
    """Every set and update appends exactly one history entry."""
    flux = Flux(0)

    flux.value = 1
    flux.set(2)
    flux.update(lambda v: v + 10)

    assert flux.history == (0, 1, 2, 12)
    assert flux.value == flux.history[-1]


@pytest.mark.unit
def test_flux_set_and_update_return_self_for_chaining():
    """set() and update() return the Flux."""
    flux = Flux("a")

    assert flux.set("b") is flux
    assert flux.update(str.upper) is flux
    assert flux.value == "B"


@pytest.mark.unit
def test_flux_history_is_an_immutable_snapshot():
    """Mutating a history snapshot is impossible and later sets don't alter it."""
    flux = Flux(1)
    snapshot = flux.history

    flux.value = 2

    assert snapshot == (1,)
    assert isinstance(snapshot, tuple)


@pytest.mark.unit
def test_flux_stores_same_value_repeatedly():
    """Setting an equal value still counts as a change."""
    flux = Flux(3)
    received = []
    flux.subscribe(received.append)

    flux.value = 3

    assert flux.history == (3, 3)
    assert received == [3]


@pytest.mark.unit
def test_revert_restores_value_without_growing_history():
    """Start at 0, set 1, set 2, revert(1) gives 1 with history [0, 1, 2]."""
    flux = Flux(0)
    flux.value = 1
    flux.value = 2

    flux.revert(1)

    assert flux.value == 1
    assert flux.history == (0, 1, 2)


@pytest.mark.unit
def test_revert_broadcasts_restored_value():
    """revert() notifies listeners with the restored value."""
    flux = Flux("a")
    flux.value = "b"
    received = []
    flux.subscribe(received.append)

    flux.revert(0)

    assert received == ["a"]


@pytest.mark.unit
def test_set_after_revert_appends_after_existing_history():
    """A set following a revert appends to the untouched history."""
    flux = Flux(0)
    flux.value = 1
    flux.revert(0)

    flux.value = 5

    assert flux.history == (0, 1, 5)


@pytest.mark.unit
@pytest.mark.parametrize("index", [-1, 3, 100])
def test_revert_rejects_out_of_range_index(index):
    """revert() raises HistoryIndexError outside [0, len(history))."""
    flux = Flux(0)
    flux.value = 1
    flux.value = 2

    with pytest.raises(HistoryIndexError) as exc_info:
        flux.revert(index)

    assert isinstance(exc_info.value, IndexError)
    assert exc_info.value.index == index
    assert flux.value == 2


@pytest.mark.unit
def test_failed_update_leaves_value_and_history_alone():
    """An updater that raises does not change the Flux."""
    flux = Flux(1)

    def boom(value):
        raise ValueError("nope")

    with pytest.raises(ValueError):
        flux.update(boom)

    assert flux.value == 1
    assert flux.history == (1,)


@pytest.mark.unit
def test_on_init_runs_at_construction():
    """on_init is called once when the Flux is created."""
    calls = []

    Flux(0, on_init=lambda: calls.append("init"))

    assert calls == ["init"]


@pytest.mark.unit
def test_dispose_invokes_callback_exactly_once():
    """Calling dispose() twice runs on_dispose only the first time."""
    calls = []
    flux = Flux(0, on_dispose=lambda: calls.append("dispose"))

    flux.dispose()
    flux.dispose()

    assert calls == ["dispose"]
    assert flux.disposed


@pytest.mark.unit
@pytest.mark.parametrize(
    "action",
    [
        lambda f: f.value,
        lambda f: setattr(f, "value", 1),
        lambda f: f.set(1),
        lambda f: f.update(lambda v: v + 1),
        lambda f: f.revert(0),
        lambda f: f.derive(lambda v: v),
    ],
    ids=["read", "assign", "set", "update", "revert", "derive"],
)
def test_disposed_flux_rejects_access(action):
    """Every accessor raises DisposedError after dispose()."""
    flux = Flux(0)
    flux.dispose()

    with pytest.raises(DisposedError):
        action(flux)


@pytest.mark.unit
def test_disposed_error_is_a_runtime_error():
    """DisposedError can be caught as RuntimeError."""
    flux = Flux(0)
    flux.dispose()

    with pytest.raises(RuntimeError, match="disposed"):
        flux.value


@pytest.mark.unit
def test_history_still_readable_after_dispose():
    """History is a plain snapshot and stays readable."""
    flux = Flux(0)
    flux.value = 1
    flux.dispose()

    assert flux.history == (0, 1)


@pytest.mark.unit
def test_repr_shows_key_and_value():
    flux = Flux(5, key="counter")

    assert repr(flux) == "Flux('counter', 5)"
    flux.dispose()
    assert repr(flux) == "Flux('counter', <disposed>)"
