"""
时钟驱动的完成调度器
每次时钟推进（以及每次模型变更）时找出等待结束的变迁并完成它们

设计要点:
- 按模型顺序完成，结果确定
- 同一轮中每个变迁最多完成一次
- 一轮处理期间的重入调用直接返回
"""

import logging
from typing import Dict, List

from petrinet_sim.core.firing import FiringStateMachine

logger = logging.getLogger(__name__)


class CompletionScheduler:
    """
    完成调度器

    扫描所有在途变迁，完成 now >= activation_time + delay 的变迁
    """

    def __init__(self, state_machine: FiringStateMachine):
        """
        初始化调度器

        Args:
            state_machine: 变迁发射状态机
        """
        self.state_machine = state_machine
        self.passes = 0
        self._in_pass = False

    def get_due_transitions(self, now: int) -> List[str]:
        """
        获取等待已结束的变迁

        Args:
            now: 当前时钟值

        Returns:
            变迁ID列表（按模型顺序）
        """
        return [
            t.id for t in self.state_machine.model.transitions
            if t.is_due(now)
        ]

    def get_pending(self, now: int) -> Dict[str, int]:
        """
        获取在途变迁的剩余等待拍数

        Args:
            now: 当前时钟值

        Returns:
            变迁ID -> 剩余拍数（0表示本轮即可完成）
        """
        pending = {}
        for t in self.state_machine.model.transitions:
            if not t.in_flight or t.activation_time is None:
                continue
            pending[t.id] = max(0, t.activation_time + t.delay - now)
        return pending

    def run_pass(self, now: int) -> List[str]:
        """
        执行一轮完成扫描

        Args:
            now: 当前时钟值

        Returns:
            本轮完成的变迁ID列表
        """
        if self._in_pass:
            return []

        self._in_pass = True
        completed = []
        try:
            for transition_id in self.get_due_transitions(now):
                if self.state_machine.complete(transition_id):
                    completed.append(transition_id)
            self.passes += 1
        finally:
            self._in_pass = False

        if completed:
            logger.debug("时刻 %d 完成变迁: %s", now, ", ".join(completed))
        return completed

    @property
    def in_pass(self) -> bool:
        """是否正在执行扫描"""
        return self._in_pass
