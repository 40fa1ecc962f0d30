"""
发射事件模型
定义引擎在变迁激活/完成时发出的事件

功能:
- 事件属性定义
- 托肯变化量统计
- 供界面做发射动画的事件流数据
"""

from typing import Dict
from dataclasses import dataclass, field

from petrinet_sim.models.enums import FiringEventType


@dataclass
class FiringEvent:
    """
    发射事件模型

    记录一次托肯取走（STARTED）或托肯投放（COMPLETED）

    Attributes:
        transition_id: 变迁ID
        event_type: 事件类型（STARTED/COMPLETED）
        time: 发生时的时钟值
        consumed: 取走的托肯（库所ID -> 数量），仅STARTED
        produced: 投放的托肯（库所ID -> 数量），仅COMPLETED
        delay: 变迁延时
    """

    transition_id: str
    event_type: str
    time: int
    consumed: Dict[str, int] = field(default_factory=dict)
    produced: Dict[str, int] = field(default_factory=dict)
    delay: int = field(default=0)

    @property
    def tokens_consumed(self) -> int:
        """取走的托肯总数"""
        return sum(self.consumed.values())

    @property
    def tokens_produced(self) -> int:
        """投放的托肯总数"""
        return sum(self.produced.values())

    def is_started(self) -> bool:
        """判断是否为激活事件"""
        return self.event_type == FiringEventType.STARTED.value

    def is_completed(self) -> bool:
        """判断是否为完成事件"""
        return self.event_type == FiringEventType.COMPLETED.value

    def to_dict(self) -> dict:
        """
        转换为字典

        Returns:
            属性字典
        """
        return {
            "transition_id": self.transition_id,
            "event_type": self.event_type,
            "time": self.time,
            "consumed": dict(self.consumed),
            "produced": dict(self.produced),
            "delay": self.delay
        }
