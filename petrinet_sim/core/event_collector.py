"""
事件收集器
收集引擎运行中的所有发射事件，作为界面动画和统计的数据源

功能:
- 收集发射事件（激活/完成）
- 事件筛选和查询
- 订阅回调（界面用来播放发射动画）
- 统计汇总
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from petrinet_sim.models.enums import FiringEventType
from petrinet_sim.models.event_model import FiringEvent

logger = logging.getLogger(__name__)


class EventCollector:
    """
    事件收集器

    保存发射事件并把每个新事件推送给订阅者
    """

    def __init__(self, max_events: int = 0, enabled: bool = True):
        """
        初始化事件收集器

        Args:
            max_events: 保留的事件上限（0表示不限制，超出时丢弃最早的事件）
            enabled: 是否保存事件（订阅者总会收到推送）
        """
        self.events: List[FiringEvent] = []
        self.max_events = max_events
        self.enabled = enabled
        self._subscribers: List[Callable[[FiringEvent], Any]] = []

        # 统计计数器
        self.total_started = 0
        self.total_completed = 0
        self.tokens_consumed = 0
        self.tokens_produced = 0

    def add_event(self, event: FiringEvent):
        """
        添加事件

        Args:
            event: 发射事件
        """
        if event.event_type == FiringEventType.STARTED.value:
            self.total_started += 1
            self.tokens_consumed += event.tokens_consumed
        elif event.event_type == FiringEventType.COMPLETED.value:
            self.total_completed += 1
            self.tokens_produced += event.tokens_produced

        if self.enabled:
            self.events.append(event)
            if self.max_events and len(self.events) > self.max_events:
                del self.events[:len(self.events) - self.max_events]

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # 订阅者异常不能影响引擎状态
                logger.exception("事件订阅回调失败: %s", event.transition_id)

    def subscribe(self, callback: Callable[[FiringEvent], Any]) -> Callable[[], None]:
        """
        订阅事件推送

        Args:
            callback: 收到事件时调用的函数

        Returns:
            取消订阅的函数
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def get_all_events(self) -> List[FiringEvent]:
        """获取所有事件"""
        return self.events

    def get_events_by_transition(self, transition_id: str) -> List[FiringEvent]:
        """
        获取指定变迁的事件

        Args:
            transition_id: 变迁ID

        Returns:
            该变迁的所有事件
        """
        return [e for e in self.events if e.transition_id == transition_id]

    def get_events_by_type(self, event_type: FiringEventType) -> List[FiringEvent]:
        """获取指定类型的事件"""
        return [e for e in self.events if e.event_type == event_type.value]

    def get_events_in_range(self, start_time: int, end_time: int) -> List[FiringEvent]:
        """
        获取时钟区间 [start_time, end_time] 内的事件

        Args:
            start_time: 开始时钟值
            end_time: 结束时钟值

        Returns:
            区间内的事件列表
        """
        return [e for e in self.events if start_time <= e.time <= end_time]

    def get_last_event(self, transition_id: Optional[str] = None) -> Optional[FiringEvent]:
        """获取最近一个事件（可按变迁筛选）"""
        for event in reversed(self.events):
            if transition_id is None or event.transition_id == transition_id:
                return event
        return None

    def get_fire_counts(self) -> Dict[str, int]:
        """
        获取各变迁完成发射的次数

        Returns:
            变迁ID -> 完成次数
        """
        counts: Dict[str, int] = {}
        for event in self.events:
            if event.is_completed():
                counts[event.transition_id] = counts.get(event.transition_id, 0) + 1
        return counts

    def get_event_count(self) -> int:
        """获取事件总数"""
        return len(self.events)

    def clear(self):
        """清空所有事件（保留订阅者）"""
        self.events = []
        self.total_started = 0
        self.total_completed = 0
        self.tokens_consumed = 0
        self.tokens_produced = 0

    def get_summary(self) -> Dict[str, Any]:
        """
        获取事件汇总

        Returns:
            汇总信息字典
        """
        return {
            "total_events": len(self.events),
            "total_started": self.total_started,
            "total_completed": self.total_completed,
            "in_flight": self.total_started - self.total_completed,
            "tokens_consumed": self.tokens_consumed,
            "tokens_produced": self.tokens_produced,
            "fire_counts": self.get_fire_counts()
        }
