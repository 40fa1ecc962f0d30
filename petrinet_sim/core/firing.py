"""
变迁发射状态机
实现单个变迁从激活到完成的完整生命周期

状态流转:
1. Idle/Enabled → Waiting: 外部触发，原子地从所有输入库所取走托肯
   - delay == 0 时在同一次调用内直接完成
2. Waiting → Fired: 时钟到达 activation_time + delay 时由调度器触发，
   向所有输出库所投放托肯
3. Fired → Idle: 经过短暂的高亮时间后自动清除 firing 标志

设计要点:
- 已取走托肯（tokens_removed）的变迁不能再次激活，必须先完成
- 在途变迁不参与使能重算，输入库所的后续变化不影响其完成
- 所有操作返回布尔值，不向外抛出异常
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from petrinet_sim.models.config_model import EngineConfig
from petrinet_sim.models.enums import FiringEventType
from petrinet_sim.models.event_model import FiringEvent
from petrinet_sim.models.net_model import PetriNetModel, Transition
from petrinet_sim.core.enablement import deposit_plan, is_enabled, withdrawal_plan
from petrinet_sim.core.event_collector import EventCollector

logger = logging.getLogger(__name__)


class FiringStateMachine:
    """
    变迁发射状态机

    负责托肯的取走与投放、使能标志的重算，以及发射高亮的过期处理
    """

    def __init__(
        self,
        model: PetriNetModel,
        clock: Callable[[], int],
        event_collector: EventCollector,
        config: Optional[EngineConfig] = None,
        wall_clock: Callable[[], float] = time.monotonic
    ):
        """
        初始化状态机

        Args:
            model: Petri网模型
            clock: 返回当前全局时钟值的函数
            event_collector: 事件收集器
            config: 引擎配置
            wall_clock: 返回真实时间（秒）的函数，用于发射高亮过期
        """
        self.model = model
        self.clock = clock
        self.event_collector = event_collector
        self.config = config or EngineConfig()
        self.wall_clock = wall_clock

        # 变迁ID -> 高亮过期的真实时间
        self._pulse_deadlines: Dict[str, float] = {}

    def bind(self, model: PetriNetModel):
        """
        切换到新的模型（导入、恢复初始状态、清空画布时）

        新模型中已处于高亮状态的变迁重新计时

        Args:
            model: 新模型
        """
        self.model = model
        self._pulse_deadlines = {}
        for transition in model.transitions:
            if transition.firing:
                self._arm_pulse(transition.id)

    # ========== Idle/Enabled → Waiting ==========

    def start(self, transition_id: str) -> bool:
        """
        激活变迁：原子地取走所有输入托肯

        Args:
            transition_id: 变迁ID

        Returns:
            是否激活成功（失败时模型不变）
        """
        transition = self.model.get_node(transition_id)
        if not isinstance(transition, Transition):
            logger.debug("激活失败，不是变迁: %s", transition_id)
            return False

        if transition.tokens_removed:
            logger.debug("激活失败，变迁尚未完成上一次发射: %s", transition_id)
            return False

        plan = withdrawal_plan(transition_id, self.model)
        if plan is None:
            logger.debug("激活失败，变迁未使能: %s", transition_id)
            return False

        now = self.clock()
        for place_id, amount in plan.items():
            place = self.model.get_place(place_id)
            place.tokens = place.tokens - amount

        transition.waiting = True
        transition.tokens_removed = True
        transition.activation_time = now

        self.event_collector.add_event(FiringEvent(
            transition_id=transition_id,
            event_type=FiringEventType.STARTED.value,
            time=now,
            consumed=plan,
            delay=transition.delay
        ))
        logger.info("变迁 %s 在时刻 %d 激活，延时 %d", transition_id, now, transition.delay)

        # 无延时：同一次调用内直接完成
        if transition.delay == 0:
            self.complete(transition_id)

        return True

    # ========== Waiting → Fired ==========

    def complete(self, transition_id: str) -> bool:
        """
        完成变迁：向所有输出库所投放托肯

        只由调度器和无延时激活调用

        Args:
            transition_id: 变迁ID

        Returns:
            是否完成（变迁不存在或不在途时返回False）
        """
        transition = self.model.get_transition(transition_id)
        if transition is None or not transition.in_flight:
            return False

        plan = deposit_plan(transition_id, self.model)
        for place_id, amount in plan.items():
            place = self.model.get_place(place_id)
            place.tokens = place.tokens + amount

        transition.clear_execution_state()
        transition.firing = True
        self._arm_pulse(transition_id)

        now = self.clock()
        self.event_collector.add_event(FiringEvent(
            transition_id=transition_id,
            event_type=FiringEventType.COMPLETED.value,
            time=now,
            produced=plan,
            delay=transition.delay
        ))
        logger.info("变迁 %s 在时刻 %d 完成", transition_id, now)
        return True

    # ========== Fired → Idle ==========

    def _arm_pulse(self, transition_id: str):
        self._pulse_deadlines[transition_id] = (
            self.wall_clock() + self.config.firing_pulse_seconds
        )

    def expire_pulses(self) -> List[str]:
        """
        清除已过期的发射高亮

        Returns:
            被清除高亮的变迁ID列表
        """
        if not self._pulse_deadlines:
            return []

        now = self.wall_clock()
        expired = []
        for transition_id, deadline in list(self._pulse_deadlines.items()):
            if now < deadline:
                continue
            del self._pulse_deadlines[transition_id]
            transition = self.model.get_transition(transition_id)
            if transition is not None and transition.firing:
                transition.firing = False
                expired.append(transition_id)
        return expired

    def get_pulsing(self) -> List[str]:
        """获取仍在高亮中的变迁ID"""
        return list(self._pulse_deadlines.keys())

    # ========== 使能重算 ==========

    def refresh_enablement(self) -> List[str]:
        """
        重新计算所有非在途变迁的 can_fire

        只在值变化时写入；执行标志不一致（等待但未取走托肯，
        或取走托肯但未等待）的变迁被复位为空闲

        Returns:
            状态发生变化的变迁ID列表
        """
        changed = []
        for transition in self.model.transitions:
            if transition.in_flight:
                continue

            dirty = False
            if (
                transition.waiting
                or transition.tokens_removed
                or transition.activation_time is not None
            ):
                transition.clear_execution_state()
                dirty = True

            can_fire = is_enabled(transition.id, self.model)
            if can_fire != transition.can_fire:
                transition.can_fire = can_fire
                dirty = True

            if dirty:
                changed.append(transition.id)
        return changed
