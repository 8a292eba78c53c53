"""
tests/unit/evaluation/test_engine.py

Unit tests for ScriptEvaluationEngine against a scripted remote context.
"""

import asyncio

from pageprobe.data_models.evaluation import EvaluationRequest, ResultType
from pageprobe.evaluation.engine import ScriptEvaluationEngine


def _evaluate(engine: ScriptEvaluationEngine, **fields):
    return asyncio.run(engine.evaluate(EvaluationRequest(**fields)))


class TestSimpleEvaluation:
    """Values flow from the runner reply into the envelope."""

    def test_return_statement(self, fake_context, make_runner_reply) -> None:
        fake_context.responder = lambda d, a: make_runner_reply(value={"kind": "value", "value": 4})
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return 2 + 2")

        assert fake_context.last_payload["body"] == "return 2 + 2"
        assert envelope.result == "4"
        assert envelope.type == ResultType.NUMBER
        assert envelope.error is None
        assert envelope.console == []

    def test_bare_expression_is_wrapped(self, fake_context) -> None:
        _evaluate(ScriptEvaluationEngine(fake_context), code="  document.title  ")
        assert fake_context.last_payload["body"] == "return document.title"

    def test_arguments_are_bound_positionally(self, fake_context, make_runner_reply) -> None:
        fake_context.responder = lambda d, a: make_runner_reply(value={"kind": "value", "value": 15})
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return arg0 + arg1", args=[5, 10])

        payload = fake_context.last_payload
        assert payload["argNames"] == ["arg0", "arg1"]
        assert payload["args"] == [5, 10]
        assert envelope.result == "15"

    def test_await_flag_is_forwarded(self, fake_context) -> None:
        _evaluate(ScriptEvaluationEngine(fake_context), code="return fetch('/')", awaitAsync=False)
        assert fake_context.last_payload["awaitAsync"] is False

    def test_unawaited_promise_reply_is_plain_object(self, fake_context, make_runner_reply) -> None:
        fake_context.responder = lambda d, a: make_runner_reply(value={"kind": "value", "value": {}})
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return Promise.resolve(1)", awaitAsync=False)
        assert envelope.type == ResultType.OBJECT
        assert envelope.result == "{}"

    def test_object_result(self, fake_context, make_runner_reply) -> None:
        fake_context.responder = lambda d, a: make_runner_reply(value={"kind": "value", "value": {"a": 1}})
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return {a: 1}")
        assert envelope.type == ResultType.OBJECT
        assert envelope.result == '{\n  "a": 1\n}'

    def test_undefined_result(self, fake_context) -> None:
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return undefined")
        assert envelope.type == ResultType.UNDEFINED
        assert envelope.result == "undefined"

    def test_custom_predicate(self, fake_context) -> None:
        engine = ScriptEvaluationEngine(fake_context, is_function_body=lambda code: True)
        _evaluate(engine, code="1 + 1")
        assert fake_context.last_payload["body"] == "1 + 1"

    def test_evaluate_code_shorthand(self, fake_context, make_runner_reply) -> None:
        fake_context.responder = lambda d, a: make_runner_reply(value={"kind": "value", "value": "ok"})
        envelope = asyncio.run(ScriptEvaluationEngine(fake_context).evaluate_code("return 'ok'", args=[1]))
        assert envelope.result == '"ok"'
        assert envelope.type == ResultType.STRING
        assert fake_context.last_payload["args"] == [1]


class TestFailures:
    """Every failure is reported inside the envelope."""

    def test_thrown_error(self, fake_context, make_runner_reply) -> None:
        fake_context.responder = lambda d, a: make_runner_reply(error="test error")
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="throw new Error('test error')")

        assert envelope.result is None
        assert envelope.type == ResultType.ERROR
        assert envelope.error == "test error"
        assert envelope.failed

    def test_timeout(self, fake_context, make_runner_reply) -> None:
        async def never_settles(declaration, args):
            await asyncio.sleep(10)
            return make_runner_reply(value={"kind": "value", "value": 1})

        fake_context.responder = never_settles
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return new Promise(() => {})", timeoutMs=50)

        assert envelope.type == ResultType.ERROR
        assert "timed out" in envelope.error
        assert envelope.execution_time_ms < 5000
        assert fake_context.unsubscribe_calls == 1

    def test_dispatch_exception(self, fake_context) -> None:
        def explode(declaration, args):
            raise ConnectionError("socket closed")

        fake_context.responder = explode
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return 1")

        assert envelope.error == "socket closed"
        assert envelope.type == ResultType.ERROR
        assert fake_context.unsubscribe_calls == 1

    def test_subscribe_failure(self, fake_context) -> None:
        async def broken_subscribe(handler):
            raise RuntimeError("cannot subscribe")

        fake_context.subscribe = broken_subscribe
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return 1")

        assert envelope.error == "cannot subscribe"
        assert envelope.console == []
        assert fake_context.dispatched == []

    def test_release_failure_keeps_settled_value(self, fake_context, make_runner_reply) -> None:
        async def subscribe_with_broken_release(handler):
            fake_context.handlers.append(handler)

            async def unsubscribe() -> None:
                raise RuntimeError("listener already gone")

            return unsubscribe

        def respond(declaration, args):
            fake_context.emit_console("kept")
            return make_runner_reply(value={"kind": "value", "value": 4})

        fake_context.subscribe = subscribe_with_broken_release
        fake_context.responder = respond
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="console.log('kept'); return 4")

        assert envelope.error is None
        assert envelope.result == "4"
        assert envelope.type == ResultType.NUMBER
        assert envelope.console == ["kept"]

    def test_release_failure_after_failed_attempt(self, fake_context, make_runner_reply) -> None:
        async def subscribe_with_broken_release(handler):
            async def unsubscribe() -> None:
                raise RuntimeError("listener already gone")

            return unsubscribe

        fake_context.subscribe = subscribe_with_broken_release
        fake_context.responder = lambda d, a: make_runner_reply(error="test error")
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="throw new Error('test error')")

        assert envelope.error == "test error"


class TestConsoleCapture:
    """Console output is scoped to a single request."""

    def test_console_messages_are_captured(self, fake_context, make_runner_reply) -> None:
        def respond(declaration, args):
            fake_context.emit_console("test message")
            return make_runner_reply(value={"kind": "value", "value": "done"})

        fake_context.responder = respond
        envelope = _evaluate(
            ScriptEvaluationEngine(fake_context),
            code="console.log('test message'); return 'done'",
        )

        assert "test message" in envelope.console
        assert envelope.result == '"done"'

    def test_console_kept_on_failure(self, fake_context, make_runner_reply) -> None:
        def respond(declaration, args):
            fake_context.emit_console("about to fail")
            return make_runner_reply(error="boom")

        fake_context.responder = respond
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="console.log('about to fail'); throw 1")

        assert envelope.console == ["about to fail"]
        assert envelope.error == "boom"

    def test_sequential_requests_are_isolated(self, fake_context, make_runner_reply) -> None:
        messages = iter(["first", "second"])

        def respond(declaration, args):
            fake_context.emit_console(next(messages))
            return make_runner_reply()

        fake_context.responder = respond
        engine = ScriptEvaluationEngine(fake_context)

        first = _evaluate(engine, code="console.log('first')")
        fake_context.emit_console("between requests")
        second = _evaluate(engine, code="console.log('second')")

        assert first.console == ["first"]
        assert second.console == ["second"]

    def test_subscription_released_every_time(self, fake_context, make_runner_reply) -> None:
        responses = iter([make_runner_reply(), make_runner_reply(error="x"), None])
        fake_context.responder = lambda d, a: next(responses)
        engine = ScriptEvaluationEngine(fake_context)

        for _ in range(3):
            _evaluate(engine, code="return 1")

        assert fake_context.subscribe_calls == 3
        assert fake_context.unsubscribe_calls == 3
        assert fake_context.handlers == []


class TestEnvelopeTiming:
    def test_execution_time_is_non_negative(self, fake_context) -> None:
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return 1")
        assert envelope.execution_time_ms >= 0

    def test_execution_time_covers_the_attempt(self, fake_context, make_runner_reply) -> None:
        async def slow(declaration, args):
            await asyncio.sleep(0.1)
            return make_runner_reply()

        fake_context.responder = slow
        envelope = _evaluate(ScriptEvaluationEngine(fake_context), code="return 1")
        assert envelope.execution_time_ms >= 90
