import pytest

from steamsalebot.events import Consumer, Event, EventType, Fetcher, Processor


def test_event_type_values():
    assert EventType(0) is EventType.UNKNOWN
    assert EventType(1) is EventType.MESSAGE
    assert Event(EventType(1)).type == 1


def test_event_defaults():
    event = Event()
    assert event.type is EventType.UNKNOWN
    assert event.text == ""
    assert event.meta is None


def test_event_equality():
    assert Event(EventType.MESSAGE, "/help", 1) == Event(EventType.MESSAGE, "/help", 1)
    assert Event(EventType.MESSAGE, "/help") != Event(EventType.MESSAGE, "/add")


@pytest.mark.parametrize("cls", [Fetcher, Processor, Consumer])
def test_roles_are_abstract(cls):
    with pytest.raises(TypeError):
        cls()


def test_partial_processor_is_abstract():
    class OnlyProcess(Processor):
        def process(self, event):
            return None

    class Full(Processor):
        def __init__(self):
            self.seen = []

        def process(self, event):
            self.seen.append(event.text)

        def disc_notif(self):
            return None

        def week_sale_notif(self):
            return None

        def sales_notif(self):
            return None

    with pytest.raises(TypeError):
        OnlyProcess()

    full = Full()
    full.process(Event(EventType.MESSAGE, "/help"))
    assert full.seen == ["/help"]


def test_concrete_fetcher_works():
    class ListFetcher(Fetcher):
        def __init__(self, events):
            self.events = events

        def fetch(self, limit):
            taken, self.events = self.events[:limit], self.events[limit:]
            return taken

    fetcher = ListFetcher([Event(EventType.MESSAGE, str(n)) for n in range(3)])
    assert [e.text for e in fetcher.fetch(2)] == ["0", "1"]
    assert [e.text for e in fetcher.fetch(2)] == ["2"]