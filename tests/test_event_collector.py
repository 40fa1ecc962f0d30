"""
事件收集器单元测试
测试EventCollector的记录、查询与订阅

测试内容:
- 事件记录与上限
- 按变迁/类型/时间查询
- 订阅与取消订阅
- 汇总统计
"""

import pytest

from petrinet_sim.models.enums import FiringEventType
from petrinet_sim.models.event_model import FiringEvent
from petrinet_sim.core.event_collector import EventCollector


def create_events():
    """创建一组事件：t1 激活、t2 激活、t1 完成"""
    return [
        FiringEvent("transition-1", FiringEventType.STARTED.value, 0,
                    consumed={"position-0": 2}, delay=2),
        FiringEvent("transition-2", FiringEventType.STARTED.value, 1,
                    consumed={"position-3": 1}, delay=5),
        FiringEvent("transition-1", FiringEventType.COMPLETED.value, 2,
                    produced={"position-4": 1}, delay=2),
    ]


class TestEventCollector:
    """事件收集器测试类"""

    def test_queries(self):
        """测试查询"""
        collector = EventCollector()
        for event in create_events():
            collector.add_event(event)

        assert collector.get_event_count() == 3
        assert len(collector.get_events_by_transition("transition-1")) == 2
        assert len(collector.get_events_by_type(FiringEventType.STARTED)) == 2
        assert [e.time for e in collector.get_events_in_range(1, 2)] == [1, 2]
        assert collector.get_last_event("transition-2").time == 1
        assert collector.get_fire_counts() == {"transition-1": 1}

    def test_summary(self):
        """测试汇总"""
        collector = EventCollector()
        for event in create_events():
            collector.add_event(event)

        summary = collector.get_summary()
        assert summary["total_started"] == 2
        assert summary["total_completed"] == 1
        assert summary["in_flight"] == 1
        assert summary["tokens_consumed"] == 3
        assert summary["tokens_produced"] == 1

    def test_max_events(self):
        """测试超出上限时丢弃最早的事件"""
        collector = EventCollector(max_events=2)
        for event in create_events():
            collector.add_event(event)

        assert [e.time for e in collector.get_all_events()] == [1, 2]
        # 计数器不受丢弃影响
        assert collector.total_started == 2

    def test_disabled_still_notifies(self):
        """测试关闭记录时仍推送给订阅者"""
        collector = EventCollector(enabled=False)
        received = []
        collector.subscribe(received.append)
        collector.add_event(create_events()[0])

        assert collector.get_event_count() == 0
        assert len(received) == 1

    def test_unsubscribe(self):
        """测试取消订阅"""
        collector = EventCollector()
        received = []
        unsubscribe = collector.subscribe(received.append)
        events = create_events()

        collector.add_event(events[0])
        unsubscribe()
        collector.add_event(events[1])
        assert len(received) == 1

    def test_subscriber_error_isolated(self):
        """测试订阅者异常不影响记录"""
        collector = EventCollector()

        def broken(event):
            raise RuntimeError("boom")

        collector.subscribe(broken)
        collector.add_event(create_events()[0])
        assert collector.get_event_count() == 1

    def test_clear(self):
        """测试清空"""
        collector = EventCollector()
        for event in create_events():
            collector.add_event(event)
        collector.clear()

        assert collector.get_event_count() == 0
        assert collector.get_summary()["total_started"] == 0

    def test_event_to_dict(self):
        """测试事件转换为字典"""
        event = create_events()[0]
        data = event.to_dict()
        assert data["transition_id"] == "transition-1"
        assert data["consumed"] == {"position-0": 2}
        assert event.is_started()
        assert not event.is_completed()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
