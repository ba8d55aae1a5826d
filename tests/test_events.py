from interview_analysis.managers.events import AnalysisEvent, AnalysisEventBus, AnalysisEventType, EventRecorder


def event(event_type, subject_id="r-1"):
    return AnalysisEvent(type=event_type, subject_id=subject_id)


def test_typed_subscription(event_bus):
    received = []
    event_bus.subscribe(AnalysisEventType.COMPLETE, received.append)

    event_bus.emit(event(AnalysisEventType.START))
    event_bus.emit(event(AnalysisEventType.COMPLETE))

    assert [e.type for e in received] == [AnalysisEventType.COMPLETE]


def test_subject_subscription(event_bus):
    received = []
    event_bus.subscribe_subject("r-2", received.append)

    event_bus.emit(event(AnalysisEventType.START, "r-1"))
    event_bus.emit(event(AnalysisEventType.START, "r-2"))
    event_bus.emit(event(AnalysisEventType.PROGRESS, "r-2"))

    assert [e.type for e in received] == [AnalysisEventType.START, AnalysisEventType.PROGRESS]


def test_unsubscribe(event_bus):
    received = []
    event_bus.subscribe(AnalysisEventType.ERROR, received.append)
    event_bus.subscribe_subject("r-1", received.append)

    event_bus.unsubscribe(received.append, event_type=AnalysisEventType.ERROR)
    event_bus.unsubscribe(received.append, subject_id="r-1")
    event_bus.emit(event(AnalysisEventType.ERROR))

    assert received == []


def test_failing_handler_does_not_block_others(event_bus, recorder):
    def broken(_):
        raise RuntimeError("boom")

    event_bus.subscribe(AnalysisEventType.START, broken)
    event_bus.emit(event(AnalysisEventType.START))

    assert recorder.types() == [AnalysisEventType.START]


def test_recorder_filters_by_subject():
    recorder = EventRecorder()
    recorder(event(AnalysisEventType.START, "a"))
    recorder(event(AnalysisEventType.START, "b"))
    recorder(event(AnalysisEventType.COMPLETE, "a"))

    assert recorder.types("a") == [AnalysisEventType.START, AnalysisEventType.COMPLETE]
    assert len(recorder.for_subject("b")) == 1

    recorder.clear()
    assert recorder.events == []
