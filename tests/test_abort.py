"""Tests for abort module."""

import asyncio
import logging

import pytest

from abortable import DEFAULT_ABORT_REASON, AbortController, AbortError, AbortEvent, AbortSignal


class TestAbortSignal:
    def test_initial_state(self):
        signal = AbortSignal()
        assert signal.aborted is False
        assert signal.reason is None

    def test_cannot_abort_directly(self):
        signal = AbortSignal()
        # _abort is internal, but signal has no public abort method
        assert not hasattr(signal, "abort") or not callable(getattr(signal, "abort", None))

    def test_throw_if_aborted_when_not_aborted(self):
        signal = AbortSignal()
        signal.throw_if_aborted()  # Should not raise

    def test_throw_if_aborted_when_aborted(self):
        controller = AbortController()
        controller.abort("stop")
        with pytest.raises(AbortError, match="stop") as exc_info:
            controller.signal.throw_if_aborted()
        assert isinstance(exc_info.value.details, AbortEvent)


class TestAbortController:
    def test_creates_signal(self):
        controller = AbortController()
        assert isinstance(controller.signal, AbortSignal)
        assert controller.signal.aborted is False

    def test_abort_sets_signal(self):
        controller = AbortController()
        controller.abort()
        assert controller.signal.aborted is True
        assert controller.signal.reason == DEFAULT_ABORT_REASON

    def test_abort_records_reason(self):
        controller = AbortController()
        controller.abort({"code": 42})
        assert controller.signal.reason == {"code": 42}

    def test_abort_is_idempotent(self):
        controller = AbortController()
        controller.abort("first")
        controller.abort("second")
        assert controller.signal.aborted is True
        assert controller.signal.reason == "first"


class TestAbortCallbacks:
    def test_callback_called_on_abort(self):
        controller = AbortController()
        called = []

        controller.signal.on_abort(lambda event: called.append(event.reason))
        assert called == []

        controller.abort("now")
        assert called == ["now"]

    def test_callback_receives_event(self):
        controller = AbortController()
        events = []

        controller.signal.on_abort(events.append)
        controller.abort("why")

        assert len(events) == 1
        assert events[0].type == "abort"
        assert events[0].reason == "why"

    def test_callback_called_immediately_if_already_aborted(self):
        controller = AbortController()
        controller.abort()

        called = []
        controller.signal.on_abort(lambda event: called.append(1))
        assert called == [1]

    def test_multiple_callbacks(self):
        controller = AbortController()
        called = []

        controller.signal.on_abort(lambda event: called.append(1))
        controller.signal.on_abort(lambda event: called.append(2))
        controller.signal.on_abort(lambda event: called.append(3))

        controller.abort()
        assert called == [1, 2, 3]

    def test_callbacks_fire_once(self):
        controller = AbortController()
        called = []

        controller.signal.on_abort(lambda event: called.append(1))
        controller.signal.on_abort(lambda event: called.append(2))

        controller.abort()
        controller.abort()
        assert called == [1, 2]

    def test_unsubscribe(self):
        controller = AbortController()
        called = []

        unsub = controller.signal.on_abort(lambda event: called.append(1))
        unsub()

        controller.abort()
        assert called == []

    def test_callback_error_doesnt_stop_others(self, caplog):
        controller = AbortController()
        called = []

        def broken(event):
            raise RuntimeError("oops")

        controller.signal.on_abort(lambda event: called.append(1))
        controller.signal.on_abort(broken)
        controller.signal.on_abort(lambda event: called.append(3))

        with caplog.at_level(logging.ERROR, logger="abortable.abort"):
            controller.abort()  # Should not raise

        assert called == [1, 3]
        assert "raised" in caplog.text


class TestAbortWait:
    @pytest.mark.asyncio
    async def test_wait_returns_reason(self, later):
        controller = AbortController()
        later(0.01, controller.abort, "done waiting")

        reason = await asyncio.wait_for(controller.signal.wait(), timeout=1)
        assert reason == "done waiting"

    @pytest.mark.asyncio
    async def test_wait_when_already_aborted(self):
        controller = AbortController()
        controller.abort("early")
        assert await controller.signal.wait() == "early"


class TestAbortError:
    def test_name_and_message(self):
        error = AbortError("aborted by test")
        assert error.name == "AbortError"
        assert error.message == "aborted by test"
        assert str(error) == "aborted by test"

    def test_default_reason(self):
        assert AbortError().message == "aborted"
        assert AbortError(None).message == "aborted"

    def test_stringifies_reason(self):
        error = AbortError(404)
        assert error.message == "404"
        assert error.reason == 404

    def test_carries_details(self):
        event = AbortEvent(reason="x")
        assert AbortError("x", event).details is event
