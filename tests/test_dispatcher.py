import asyncio

from cinepay.core.dispatcher import NotificationDispatcher


def test_submit_runs_notification_in_background():
    delivered = []

    async def notify(name):
        await asyncio.sleep(0)
        delivered.append(name)

    async def scenario():
        dispatcher = NotificationDispatcher()
        task = dispatcher.submit("greeting", notify, "uma")
        assert task is not None
        assert dispatcher.pending == 1
        await task
        return dispatcher

    dispatcher = asyncio.run(scenario())
    assert delivered == ["uma"]
    assert dispatcher.pending == 0
    assert dispatcher.failures == []


def test_failed_notification_is_recorded_not_raised():
    async def broken():
        raise ConnectionError("smtp down")

    async def scenario():
        dispatcher = NotificationDispatcher()
        await dispatcher.submit("booking-confirmation:BK1", broken)
        return dispatcher

    dispatcher = asyncio.run(scenario())
    assert len(dispatcher.failures) == 1
    failure = dispatcher.failures[0]
    assert failure["notification"] == "booking-confirmation:BK1"
    assert failure["error"] == "smtp down"


def test_submit_without_event_loop_is_dropped():
    async def notify():
        return None

    dispatcher = NotificationDispatcher()
    assert dispatcher.submit("orphan", notify) is None
    assert dispatcher.failures[0]["error"] == "no running event loop"


def test_failure_log_is_bounded():
    dispatcher = NotificationDispatcher(max_failures=2)
    for i in range(5):
        dispatcher._record_failure(f"n{i}", "boom")
    assert [f["notification"] for f in dispatcher.failures] == ["n3", "n4"]


def test_drain_cancels_stragglers():
    cancelled = []

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def scenario():
        dispatcher = NotificationDispatcher()
        dispatcher.submit("slow", slow)
        await asyncio.sleep(0)
        await dispatcher.drain(timeout=0.05)
        await asyncio.sleep(0)
        return dispatcher

    dispatcher = asyncio.run(scenario())
    assert cancelled == [True]
    assert dispatcher.pending == 0
