from __future__ import annotations

import threading

from screen_overlay.render_context import DeferredRenderContext, ImmediateRenderContext, QtRenderContext


def test_immediate_context_runs_inline() -> None:
    calls = []
    ImmediateRenderContext().post(lambda: calls.append("ran"))
    assert calls == ["ran"]


def test_deferred_context_runs_in_post_order() -> None:
    context = DeferredRenderContext()
    calls = []
    context.post(lambda: calls.append(1))
    context.post(lambda: calls.append(2))
    assert calls == []
    assert context.drain() == 2
    assert calls == [1, 2]
    assert len(context) == 0


def test_qt_context_defers_to_event_loop(qt_app, wait_for) -> None:
    context = QtRenderContext()
    calls = []
    context.post(lambda: calls.append(threading.get_ident()))
    assert calls == []
    assert wait_for(lambda: len(calls) == 1)
    assert calls == [threading.get_ident()]


def test_qt_context_marshals_from_worker_thread(qt_app, wait_for) -> None:
    context = QtRenderContext()
    gui_thread = threading.get_ident()
    calls = []

    worker = threading.Thread(target=lambda: context.post(lambda: calls.append(threading.get_ident())))
    worker.start()
    worker.join(timeout=5.0)

    assert wait_for(lambda: len(calls) == 1)
    assert calls == [gui_thread]
