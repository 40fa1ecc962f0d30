"""
完成调度器单元测试
测试CompletionScheduler的到期判断与完成顺序

测试内容:
- 延时到期前后的完成
- 多个在途变迁按模型顺序完成
- 剩余等待拍数
- 重入保护
"""

import pytest

from conftest import FakeWallClock
from petrinet_sim.models.net_model import Arc, PetriNetModel, Place, Transition
from petrinet_sim.core.event_collector import EventCollector
from petrinet_sim.core.firing import FiringStateMachine
from petrinet_sim.core.scheduler import CompletionScheduler


def create_two_branch_net() -> PetriNetModel:
    """
    创建两个分支的网络

    p0 → t_a(delay=2) → p1
    p2 → t_b(delay=1) → p3
    """
    return PetriNetModel(
        nodes=[
            Place(id="position-0", tokens=1),
            Place(id="position-1"),
            Transition(id="transition-2", delay=2),
            Place(id="position-3", tokens=1),
            Place(id="position-4"),
            Transition(id="transition-5", delay=1),
        ],
        arcs=[
            Arc(id="a1", source="position-0", target="transition-2"),
            Arc(id="a2", source="transition-2", target="position-1"),
            Arc(id="a3", source="position-3", target="transition-5"),
            Arc(id="a4", source="transition-5", target="position-4"),
        ]
    )


def create_scheduler(model: PetriNetModel, clock):
    """创建调度器"""
    machine = FiringStateMachine(
        model, lambda: clock[0], EventCollector(), wall_clock=FakeWallClock()
    )
    return CompletionScheduler(machine)


class TestCompletionScheduler:
    """完成调度器测试类"""

    def test_waits_for_delay(self):
        """测试延时到期前不完成"""
        model = PetriNetModel(
            nodes=[
                Place(id="position-0", tokens=2),
                Place(id="position-1"),
                Transition(id="transition-2", delay=3),
            ],
            arcs=[
                Arc(id="a1", source="position-0", target="transition-2", weight=2),
                Arc(id="a2", source="transition-2", target="position-1", weight=1),
            ]
        )
        clock = [0]
        scheduler = create_scheduler(model, clock)
        scheduler.state_machine.start("transition-2")

        for now in (1, 2):
            clock[0] = now
            assert scheduler.run_pass(now) == []
            assert model.get_place("position-1").tokens == 0

        clock[0] = 3
        assert scheduler.run_pass(3) == ["transition-2"]
        assert model.get_place("position-1").tokens == 1
        assert not model.get_transition("transition-2").waiting

    def test_model_order(self):
        """测试同一轮按模型顺序完成"""
        model = create_two_branch_net()
        clock = [0]
        scheduler = create_scheduler(model, clock)
        scheduler.state_machine.start("transition-5")
        scheduler.state_machine.start("transition-2")

        clock[0] = 5
        assert scheduler.get_due_transitions(5) == ["transition-2", "transition-5"]
        assert scheduler.run_pass(5) == ["transition-2", "transition-5"]

        # 每个变迁只完成一次
        assert scheduler.run_pass(5) == []
        assert model.get_place("position-1").tokens == 1
        assert model.get_place("position-4").tokens == 1

    def test_pending(self):
        """测试剩余等待拍数"""
        model = create_two_branch_net()
        clock = [0]
        scheduler = create_scheduler(model, clock)
        scheduler.state_machine.start("transition-2")
        scheduler.state_machine.start("transition-5")

        assert scheduler.get_pending(0) == {"transition-2": 2, "transition-5": 1}
        assert scheduler.get_pending(1) == {"transition-2": 1, "transition-5": 0}

    def test_pass_counter(self):
        """测试扫描计数"""
        model = create_two_branch_net()
        scheduler = create_scheduler(model, [0])

        scheduler.run_pass(0)
        scheduler.run_pass(1)
        assert scheduler.passes == 2
        assert not scheduler.in_pass

    def test_reentrant_pass_ignored(self):
        """测试扫描期间的重入调用直接返回"""
        model = create_two_branch_net()
        clock = [0]
        scheduler = create_scheduler(model, clock)
        scheduler.state_machine.start("transition-2")

        nested = []
        scheduler.state_machine.event_collector.subscribe(
            lambda event: nested.append(scheduler.run_pass(clock[0]))
        )

        clock[0] = 2
        assert scheduler.run_pass(2) == ["transition-2"]
        assert nested == [[]]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
